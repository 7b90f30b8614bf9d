"""Procedure boundary: named calls over the engine services."""

from capital_modules.procedures.router import ProcedureRouter

__all__ = ["ProcedureRouter"]
