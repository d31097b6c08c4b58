"""Source compilation ahead of packaging."""

from .go import build_environment, compile_go, is_go_source, prepared_executable

__all__ = ["build_environment", "compile_go", "is_go_source", "prepared_executable"]
