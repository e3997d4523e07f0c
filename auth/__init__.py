"""
auth — Caller authentication module.

Provides:
  • HMAC-signed JSON payloads (shared with OAuth state tokens)
  • Bearer token creation & verification
  • ``get_current_user_id`` / ``get_optional_user_id`` FastAPI dependencies
"""
