from fastapi import Depends
from supabase import Client

from src.core.database import get_db
from src.core.settings import Settings, get_settings

from .auth.refresh import XeroTokenService
from .auth.service import XeroOAuthService
from .etl.data_service import XeroDataService
from .etl.extractor import XeroETLExtractor
from .repository import XeroRepository


def get_xero_repository(db: Client = Depends(get_db)) -> XeroRepository:
    return XeroRepository(db)


def get_oauth_service(
    repository: XeroRepository = Depends(get_xero_repository),
    settings: Settings = Depends(get_settings),
) -> XeroOAuthService:
    return XeroOAuthService(repository, settings)


def get_token_service(
    repository: XeroRepository = Depends(get_xero_repository),
    settings: Settings = Depends(get_settings),
) -> XeroTokenService:
    return XeroTokenService(repository, settings)


def get_etl_extractor(
    repository: XeroRepository = Depends(get_xero_repository),
    token_service: XeroTokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
) -> XeroETLExtractor:
    return XeroETLExtractor(
        repository=repository,
        token_service=token_service,
        data_service=XeroDataService(settings),
        settings=settings,
    )
