import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.products.models import Product

logger = logging.getLogger(__name__)


class SQLAlchemyProductRepository:
    """Accès au catalogue. Chaque intention (actifs, tous, suppression logique) a sa méthode."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_active(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Produits non supprimés, indexés par ID."""
        ids = set(product_ids)
        if not ids:
            return {}
        result = await self.db.execute(
            select(Product).where(Product.id.in_(ids), Product.deleted_at.is_(None))
        )
        return {product.id: product for product in result.scalars().all()}

    async def get_including_deleted(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Produits indexés par ID, y compris ceux supprimés logiquement."""
        ids = set(product_ids)
        if not ids:
            return {}
        result = await self.db.execute(select(Product).where(Product.id.in_(ids)))
        return {product.id: product for product in result.scalars().all()}

    async def soft_delete(self, product_id: int) -> Optional[Product]:
        """Marque le produit comme supprimé. Retourne None s'il n'existe pas."""
        product = await self.db.get(Product, product_id)
        if product is None:
            logger.warning(f"Tentative de suppression du produit ID {product_id} inexistant.")
            return None
        if product.deleted_at is None:
            product.deleted_at = datetime.now(timezone.utc)
            await self.db.flush()
            logger.info(f"Produit ID {product_id} supprimé logiquement.")
        return product
