"""
connectors — LinkedIn OAuth integration.

Handles:
  • Authorization-URL generation with signed, single-use state
  • Callback handling (code → token exchange → userinfo ``sub``)
  • Per-user connection storage with token expiry tracking
  • Fernet encryption of tokens at rest
  • Disconnect
"""
