"""Presentation-facing API."""

from pagosettle.api.controller import PaymentController

__all__ = ["PaymentController"]
