"""
FastAPI dependencies resolving collaborators stored on ``app.state``.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.config import Settings
from second_brain.shared.database import get_db_session
from second_brain.telephony.config import TelephonyConfig
from second_brain.telephony.interface import TelephonyProvider


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


DbSession = Annotated[AsyncSession, Depends(get_db_session)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]


def get_telephony_provider(request: Request) -> TelephonyProvider:
    """Get the telephony provider from app state."""
    return request.app.state.telephony_provider


def get_telephony_config(request: Request) -> TelephonyConfig:
    return request.app.state.telephony_config


Telephony = Annotated[TelephonyProvider, Depends(get_telephony_provider)]
TelephonySettings = Annotated[TelephonyConfig, Depends(get_telephony_config)]
