from concurrent.futures import ThreadPoolExecutor

from integrachain.app.domain.errors import AlreadyRegistered, AlreadyRevoked
from integrachain.app.domain.hashing import compute_hash
from integrachain.app.infra.db import init_db, make_engine
from integrachain.app.services.registry import Registry

WORKERS = 16


def _registry():
    engine = make_engine("sqlite://")
    init_db(engine)
    return Registry(engine=engine)


def _attempt(fn, *args):
    try:
        fn(*args)
        return "ok"
    except (AlreadyRegistered, AlreadyRevoked) as exc:
        return exc.kind.value


def test_racing_registrations_have_one_winner():
    registry = _registry()
    target = compute_hash(b"contested artifact")
    callers = [f"0x{i:040x}" for i in range(1, WORKERS + 1)]

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        outcomes = list(
            pool.map(lambda caller: _attempt(registry.register, target, caller[-6:], caller), callers)
        )

    assert outcomes.count("ok") == 1
    assert outcomes.count("already_registered") == WORKERS - 1

    winner = callers[outcomes.index("ok")]
    record = registry.get_record(target)
    assert record.owner == winner
    assert record.note == winner[-6:]
    assert len(registry.scan_events(record_hash=target)) == 1


def test_racing_revocations_have_one_winner():
    registry = _registry()
    target = compute_hash(b"to be withdrawn")
    owner = "0x" + "ab" * 20
    registry.register(target, "", owner)

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        outcomes = list(pool.map(lambda _: _attempt(registry.revoke, target, owner), range(WORKERS)))

    assert outcomes.count("ok") == 1
    assert outcomes.count("already_revoked") == WORKERS - 1
    assert registry.verify_chain()["ok"]
    assert registry.check_consistency()["ok"]


def test_distinct_hashes_register_in_parallel():
    registry = _registry()
    owner = "0x" + "cd" * 20
    hashes = [compute_hash(f"file-{i}".encode()) for i in range(WORKERS * 2)]

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        outcomes = list(pool.map(lambda h: _attempt(registry.register, h, "", owner), hashes))

    assert outcomes == ["ok"] * len(hashes)
    events = registry.scan_events(limit=1000)
    assert [event.seq for event in events] == sorted(event.seq for event in events)
    assert {event.hash for event in events} == set(hashes)
    assert registry.verify_chain()["ok"]
