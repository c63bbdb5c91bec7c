"""Caller identities shared by the API tests."""
from rids_backend.auth import Identity

STAFF = Identity(id="00000000-0000-0000-0000-000000000001", email="clerk@example.test", role="staff")
RESERVIST = Identity(id="11111111-1111-1111-1111-111111111111", email="res@example.test", role="reservist")
OTHER_RESERVIST = Identity(id="22222222-2222-2222-2222-222222222222", role="reservist")
