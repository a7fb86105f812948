"""
Board client: REST API client, guest-mode storage, and optimistic board state.
"""

from client.api_client import ApiClient, ApiError  # noqa: F401
from client.board import Board, COLUMNS  # noqa: F401
from client.guest_store import GuestStore, LocalTaskBackend  # noqa: F401
