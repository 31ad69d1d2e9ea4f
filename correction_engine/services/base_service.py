"""
基础服务类 - 所有服务的公共功能
Services get settings and a module logger; collaborators are passed in explicitly.
"""
from typing import Dict, Type, TypeVar

from correction_engine.core.config import Settings, get_settings
from correction_engine.core.logging import get_logger

T = TypeVar("T")


def singleton(cls: Type[T]) -> Type[T]:
    """
    单例装饰器 - 每个类只构造一次

    Later constructor arguments are ignored, so only use it on read-only
    services without collaborators (the built-in synonym dictionary).
    """
    instances: Dict[type, object] = {}

    class SingletonWrapper(cls):  # type: ignore
        def __new__(klass, *args, **kwargs):
            if klass not in instances:
                instances[klass] = object.__new__(klass)
            return instances[klass]

        def __init__(self, *args, **kwargs):
            if getattr(self, "_singleton_ready", False):
                return
            super().__init__(*args, **kwargs)
            self._singleton_ready = True

    for attr in ("__name__", "__qualname__", "__module__", "__doc__"):
        setattr(SingletonWrapper, attr, getattr(cls, attr))
    return SingletonWrapper  # type: ignore


class BaseService:
    """
    基础服务类

    - ``settings``: injected in tests, process-wide settings otherwise
    - ``logger``: structlog logger named after the concrete service module
    - ``_initialize``: lazy hook run once by ``_ensure_initialized``, for
      work that needs credentials or network (the generation client)
    """

    def __init__(self, settings: Settings = None):
        self.settings = settings or get_settings()
        self.logger = get_logger(self.__class__.__module__, service=self.__class__.__name__)
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _ensure_initialized(self):
        if not self._initialized:
            self._initialize()
            self._initialized = True

    def _initialize(self):
        """子类覆盖此方法"""

    async def close(self) -> None:
        """Release held resources; no-op unless overridden."""

    def __repr__(self):
        return f"<{self.__class__.__name__} initialized={self._initialized}>"
