from .reader_session import ReaderSession

__all__ = ["ReaderSession"]
