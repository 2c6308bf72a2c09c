from typing import Any, List, Optional, Union

from pydantic import (
    AnyHttpUrl,
    Field,
    PostgresDsn,
    ValidationInfo,
    field_validator,
)
from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    ENVIRONMENT_NAME: str = "Development"

    @property
    def is_production(self):
        return self.ENVIRONMENT_NAME == "Production"

    API_V1_STR: str = "/api/v1"
    # BACKEND_CORS_ORIGINS is a JSON-formatted list of origins
    # e.g: '["http://localhost", "http://localhost:3000"]'
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    PROJECT_NAME: str = "Primos Loyalty API"

    # Ronin mainnet
    RONIN_RPC_URL: str = "https://api.roninchain.com/rpc"
    RONIN_CHAIN_ID: int = 2020

    PRIMOS_NFT_CONTRACT: str = "0x23924869ff64ab205b3e3be388a373d75de74ebd"
    EVOLUTION_STONE_CONTRACT: str = "0xE3a334D6b7681D0151b81964CAf6353905e24B1b"

    IPFS_GATEWAY_URL: str = "https://ipfs.io/ipfs/"
    METADATA_REQUEST_TIMEOUT: int = 15
    METADATA_MAX_ATTEMPTS: int = 3
    METADATA_INITIAL_DELAY_SECONDS: float = 1.0
    METADATA_BACKOFF_FACTOR: float = 2.0

    # delay before the single retry of a failed nft usage insert
    NFT_USAGE_RETRY_DELAY_SECONDS: float = 0.5

    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "primos"
    SQLALCHEMY_DATABASE_URI: str | None = Field(default=None, validate_default=True)

    # Seq log
    SEQ_SERVER_URL: Optional[str] = None
    SEQ_SERVER_API_KEY: Optional[str] = None

    @field_validator("SQLALCHEMY_DATABASE_URI", mode="before")
    def assemble_db_connection(cls, v: str | None, info: ValidationInfo) -> Any:
        if isinstance(v, str):
            return v
        return str(
            PostgresDsn.build(
                scheme="postgresql+psycopg",
                username=info.data.get("POSTGRES_USER"),
                password=info.data.get("POSTGRES_PASSWORD"),
                host=info.data.get("POSTGRES_SERVER"),
                path=f"{info.data.get('POSTGRES_DB') or ''}",
            )
        )

    class Config:

        case_sensitive = True
        env_file = "../.env"
        extra = "allow"


settings = Settings()
