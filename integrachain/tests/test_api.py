import base64

from fastapi.testclient import TestClient

from integrachain.app.deps import get_registry
from integrachain.app.domain.hashing import compute_hash
from integrachain.app.domain.identity import address_from_public_key
from integrachain.app.domain.merkle import request_message
from integrachain.app.domain.sign import generate_keypair, sign_message
from integrachain.app.infra.db import init_db, make_engine
from integrachain.app.main import create_app
from integrachain.app.services.registry import Registry

H1 = compute_hash(b"firmware-2.4.1.bin")
OCTET = {"Content-Type": "application/octet-stream"}


def setup_client():
    engine = make_engine("sqlite://")
    init_db(engine)
    registry = Registry(engine=engine)
    app = create_app()
    app.dependency_overrides[get_registry] = lambda: registry
    return TestClient(app)


def signed_headers(private_bytes, public_bytes, message):
    signature = base64.b64encode(sign_message(private_bytes, message)).decode()
    return {"X-Public-Key": public_bytes.hex(), "X-Signature": signature}


def register(client, keys, record_hash=H1, note="v2.4.1"):
    headers = signed_headers(*keys, request_message("register", record_hash, note))
    return client.post("/records/", json={"hash": record_hash, "note": note}, headers=headers)


def revoke(client, keys, record_hash=H1):
    headers = signed_headers(*keys, request_message("revoke", record_hash))
    return client.post(f"/records/{record_hash}/revoke", headers=headers)


def test_register_and_fetch_record():
    client = setup_client()
    alice = generate_keypair()

    resp = register(client, alice)
    assert resp.status_code == 201
    body = resp.json()
    assert body["owner"] == address_from_public_key(alice[1])
    assert body["exists"] is True and body["revoked"] is False

    fetched = client.get(f"/records/{H1}")
    assert fetched.status_code == 200
    assert fetched.json() == body
    assert client.get(f"/records/{H1[2:]}/exists").json() == {"hash": H1, "exists": True}


def test_unknown_record_returns_default_view():
    client = setup_client()
    body = client.get(f"/records/{compute_hash(b'missing')}").json()
    assert body["exists"] is False
    assert body["owner"] == "0x" + "00" * 20
    assert body["timestamp"] == 0


def test_error_kinds_are_distinct():
    client = setup_client()
    alice, bob = generate_keypair(), generate_keypair()

    assert register(client, alice).status_code == 201

    again = register(client, alice)
    assert again.status_code == 409
    assert again.json()["detail"]["kind"] == "already_registered"

    long_note = register(client, alice, compute_hash(b"other"), "n" * 81)
    assert long_note.status_code == 422
    assert long_note.json()["detail"]["kind"] == "note_too_long"

    zero = register(client, alice, "0x" + "00" * 32, "x")
    assert zero.json()["detail"]["kind"] == "zero_hash"

    stranger = revoke(client, bob)
    assert stranger.status_code == 403
    assert stranger.json()["detail"]["kind"] == "not_owner"

    missing = revoke(client, alice, compute_hash(b"never"))
    assert missing.status_code == 404
    assert missing.json()["detail"]["kind"] == "not_registered"

    assert revoke(client, alice).status_code == 200
    twice = revoke(client, alice)
    assert twice.status_code == 409
    assert twice.json()["detail"]["kind"] == "already_revoked"


def test_malformed_hash_rejected():
    client = setup_client()
    resp = client.get("/records/0xdeadbeef")
    assert resp.status_code == 422
    assert resp.json()["detail"]["kind"] == "invalid_hash"


def test_signature_required_and_bound_to_request():
    client = setup_client()
    alice = generate_keypair()

    unsigned = client.post("/records/", json={"hash": H1, "note": "x"})
    assert unsigned.status_code == 401

    headers = signed_headers(*alice, request_message("register", H1, "original note"))
    forged = client.post("/records/", json={"hash": H1, "note": "swapped note"}, headers=headers)
    assert forged.status_code == 401
    assert client.get(f"/records/{H1}").json()["exists"] is False


def test_replayed_revocation_is_rejected():
    client = setup_client()
    alice = generate_keypair()
    register(client, alice)

    headers = signed_headers(*alice, request_message("revoke", H1))
    assert client.post(f"/records/{H1}/revoke", headers=headers).status_code == 200
    replayed = client.post(f"/records/{H1}/revoke", headers=headers)
    assert replayed.status_code == 409


def test_event_routes():
    client = setup_client()
    alice = generate_keypair()
    register(client, alice)
    register(client, alice, compute_hash(b"second"), "second")
    revoke(client, alice)

    events = client.get("/events/").json()
    assert [e["kind"] for e in events] == ["registered", "registered", "revoked"]
    assert len(client.get("/events/", params={"kind": "revoked"}).json()) == 1
    assert len(client.get("/events/", params={"hash": H1}).json()) == 2

    recent = client.get("/events/recent", params={"limit": 1}).json()
    assert recent[0]["note"] == "second"

    report = client.get("/events/verify").json()
    assert report["ok"] is True and report["events"] == 3


def test_verify_upload():
    client = setup_client()
    alice = generate_keypair()
    payload = b"firmware-2.4.1.bin"
    register(client, alice)

    resp = client.post("/verify/", content=payload, params={"name": "fw.bin"}, headers=OCTET)
    assert resp.status_code == 200
    assert resp.json()["status"] == "verified"
    assert resp.json()["name"] == "fw.bin"

    resp = client.post("/verify/", content=payload + b"!", headers=OCTET)
    assert resp.json()["status"] == "not_found"


def test_certificate_only_for_active_registration():
    client = setup_client()
    alice = generate_keypair()
    payload = b"firmware-2.4.1.bin"
    register(client, alice)

    resp = client.post("/verify/certificate", content=payload, params={"name": "fw.bin"}, headers=OCTET)
    assert resp.status_code == 200
    cert = resp.json()
    assert cert["title"] == "IntegraChain Verification Certificate"
    assert (cert["hash"], cert["file_name"], cert["note"]) == (H1, "fw.bin", "v2.4.1")
    assert cert["owner"] == address_from_public_key(alice[1])
    assert cert["status"] == "VERIFIED - File Unchanged"

    resp = client.post("/verify/certificate", content=b"unknown", headers=OCTET)
    assert resp.status_code == 404
    assert resp.json()["detail"]["kind"] == "not_found"

    revoke(client, alice)
    resp = client.post("/verify/certificate", content=payload, headers=OCTET)
    assert resp.status_code == 404
    assert resp.json()["detail"]["kind"] == "revoked"


def test_ledger_conflict_maps_to_503(monkeypatch):
    from integrachain.app.domain.merkle import GENESIS_HASH
    from integrachain.app.services.ledger import EventLog

    client = setup_client()
    alice = generate_keypair()
    assert register(client, alice).status_code == 201

    monkeypatch.setattr(EventLog, "_latest_hash", lambda self: GENESIS_HASH)
    resp = register(client, alice, record_hash=compute_hash(b"second"), note="")
    assert resp.status_code == 503
    assert resp.json()["detail"]["kind"] == "ledger_conflict"
