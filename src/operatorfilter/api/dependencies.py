"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends

from operatorfilter.config.settings import Settings, get_settings
from operatorfilter.services.filter.engine import FilterDecisionEngine, get_filter_engine

SettingsDep = Annotated[Settings, Depends(get_settings)]
FilterEngineDep = Annotated[FilterDecisionEngine, Depends(get_filter_engine)]
