from typing import Annotated

from fastapi import Depends, Request

from chat_proxy.core.config import Settings
from chat_proxy.providers.base import Provider


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_provider(request: Request) -> Provider:
    return request.app.state.provider


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
ProviderDep = Annotated[Provider, Depends(get_provider)]
