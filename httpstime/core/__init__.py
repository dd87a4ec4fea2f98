from httpstime.core.config import settings

__all__ = ["settings"]
