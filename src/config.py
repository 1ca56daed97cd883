import logging
from decimal import Decimal
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Charger les variables d'environnement AVANT de définir la classe Settings
load_dotenv()

# Classe de configuration utilisant Pydantic BaseSettings
class Settings(BaseSettings):
    # --- Environnement ---
    # 'development' expose le détail des erreurs internes aux appelants, 'production' non
    ENVIRONMENT: str = "development"

    # --- Base de Données ---
    DATABASE_URL: Optional[str] = None
    POSTGRES_DB: str = "erp"
    POSTGRES_USER: str = "erp"
    POSTGRES_PASSWORD: str = "erp"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: str = "5432"
    DB_ECHO_LOG: bool = False

    # --- JWT (décodage uniquement, l'émission est hors périmètre) ---
    JWT_SECRET_KEY: str = "remplacer_par_une_vraie_cle_secrete_forte"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Calculs monétaires ---
    MONEY_PRECISION: int = 28
    MONEY_DECIMAL_PLACES: int = 2

    # --- Politique tarifaire ---
    DEFAULT_TAX_RATE: Decimal = Decimal("0.0825")
    DELIVERY_FEE: Decimal = Decimal("100.00")
    FREE_DELIVERY_THRESHOLD: Decimal = Decimal("1000.00")
    QUOTE_VALIDITY_DAYS: int = 30

    # --- Facturation ---
    DEFAULT_PAYMENT_TERM_DAYS: int = 30

    # --- Expéditions ---
    SHIPMENT_DEFAULT_DURATION_MINUTES: int = 90
    SHIPMENT_DEFAULT_METHOD: str = "DELIVERY"

    # --- Numérotation ---
    ENTITY_NUMBER_START: int = 1000
    ENTITY_NUMBER_PAD: int = 6

    # --- API ---
    API_V1_PREFIX: str = "/api/v1"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    LOG_LEVEL: str = "INFO"

    class Config:
        # Charger depuis les variables d'environnement (respecte load_dotenv)
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore' # Ignorer les variables d'env non définies dans le modèle

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

# Instancier la classe de configuration
settings = Settings()

if settings.JWT_SECRET_KEY == "remplacer_par_une_vraie_cle_secrete_forte":
    logger.warning("La variable JWT_SECRET_KEY utilise la valeur par défaut. Veuillez définir une clé secrète forte.")

logger.info(f"Configuration chargée: env={settings.ENVIRONMENT}, DB={settings.POSTGRES_DB}@{settings.POSTGRES_HOST}")
