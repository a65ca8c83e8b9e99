"""auth/ -- Credential management core for loginapp.

Password hashing, session tokens, user persistence and the service that
orchestrates them.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/. api/ wires configuration into the
auth components, not the other way around.
"""
