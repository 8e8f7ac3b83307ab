"""Reconcilers of the SPI resources and their wiring."""

from .access_token_controller import AccessTokenReconciler
from .binding_controller import AccessTokenBindingReconciler
from .data_update_controller import AccessTokenDataUpdateReconciler
from .secret_syncer import SecretSyncer
from .setup import Controllers, setup_controllers

__all__ = [
    "AccessTokenReconciler",
    "AccessTokenBindingReconciler",
    "AccessTokenDataUpdateReconciler",
    "SecretSyncer",
    "Controllers",
    "setup_controllers",
]
