"""Auth module - PKCE login flow against the authorization server."""

from .flow import PKCEFlow, FlowPhase
from .pkce import generate_pkce_pair, compute_code_challenge

__all__ = ["PKCEFlow", "FlowPhase", "generate_pkce_pair", "compute_code_challenge"]
