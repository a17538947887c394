import threading

from commerce_auth.services.revocation import RevocationRegistry


def test_revoke_and_membership():
    registry = RevocationRegistry()
    assert not registry.is_revoked("abc")
    registry.revoke("abc")
    assert registry.is_revoked("abc")
    assert not registry.is_revoked("abd")
    assert len(registry) == 1


def test_revoking_twice_is_idempotent():
    registry = RevocationRegistry()
    registry.revoke("abc")
    registry.revoke("abc")
    assert len(registry) == 1


def test_clear_forgets_everything():
    registry = RevocationRegistry()
    registry.revoke("abc")
    registry.clear()
    assert not registry.is_revoked("abc")


def test_concurrent_revocations_are_all_recorded():
    registry = RevocationRegistry()
    barrier = threading.Barrier(8)

    def worker(n):
        barrier.wait()
        for i in range(500):
            registry.revoke(f"{n}-{i}")
            registry.is_revoked(f"{n}-{i - 1}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(registry) == 8 * 500
    assert registry.is_revoked("7-499")
