from .app import EXIT_FATAL, EXIT_REJECTED, EXIT_SUCCESS, main

__all__ = ["EXIT_FATAL", "EXIT_REJECTED", "EXIT_SUCCESS", "main"]
