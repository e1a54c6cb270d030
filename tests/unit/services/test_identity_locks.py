"""
Unit tests for IdentityLockRegistry.
"""

import threading

from rabbitmq_declarative.services import IdentityLockRegistry


class TestIdentityLockRegistry:
    """Test cases for per-identity locks."""

    def test_same_identity_same_lock(self):
        """Each (type, identity) pair maps to one lock."""
        locks = IdentityLockRegistry()
        assert locks.lock_for("rabbitmq_user", "dan") is locks.lock_for("rabbitmq_user", "dan")
        assert locks.lock_for("rabbitmq_user", "dan") is not locks.lock_for(
            "rabbitmq_user", "eve"
        )
        assert locks.lock_for("rabbitmq_user", "dan") is not locks.lock_for("service", "dan")
        assert len(locks) == 3

    def test_hold_releases(self):
        """The lock is released when the block exits, even on error."""
        locks = IdentityLockRegistry()
        try:
            with locks.hold("rabbitmq_user", "dan"):
                assert locks.lock_for("rabbitmq_user", "dan").locked()
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert not locks.lock_for("rabbitmq_user", "dan").locked()

    def test_hold_serializes_passes(self):
        """A second holder waits for the first to finish."""
        locks = IdentityLockRegistry()
        order = []
        entered = threading.Event()
        release = threading.Event()

        def first():
            with locks.hold("rabbitmq_user", "dan"):
                order.append("first-start")
                entered.set()
                release.wait(timeout=5)
                order.append("first-end")

        def second():
            entered.wait(timeout=5)
            with locks.hold("rabbitmq_user", "dan"):
                order.append("second")

        threads = [threading.Thread(target=first), threading.Thread(target=second)]
        for thread in threads:
            thread.start()
        entered.wait(timeout=5)
        release.set()
        for thread in threads:
            thread.join(timeout=5)

        assert order == ["first-start", "first-end", "second"]

    def test_hold_drops_entry_after_last_holder(self):
        """Identities without a pass in flight do not keep a lock around."""
        locks = IdentityLockRegistry()
        for index in range(500):
            with locks.hold("rabbitmq_user", f"user{index}"):
                assert len(locks) == 1
        assert len(locks) == 0

    def test_hold_with_waiter_drops_entry_after_both(self):
        """A queued holder still runs, and the entry goes once both are done."""
        locks = IdentityLockRegistry()
        entered = threading.Event()
        release = threading.Event()
        done = threading.Event()

        def first():
            with locks.hold("rabbitmq_user", "dan"):
                entered.set()
                release.wait(timeout=5)

        def second():
            with locks.hold("rabbitmq_user", "dan"):
                done.set()

        holder = threading.Thread(target=first)
        holder.start()
        entered.wait(timeout=5)
        waiter = threading.Thread(target=second)
        waiter.start()
        lock = locks.lock_for("rabbitmq_user", "dan")
        release.set()
        holder.join(timeout=5)
        waiter.join(timeout=5)

        assert done.is_set()
        assert lock.locked() is False
        assert len(locks) == 0

    def test_cleanup_idle_removes_unheld_locks(self):
        """Locks handed out by lock_for are dropped once idle."""
        locks = IdentityLockRegistry()
        for name in ("dan", "eve", "bob"):
            locks.lock_for("rabbitmq_user", name)

        assert locks.cleanup_idle() == 3
        assert len(locks) == 0
        assert locks.cleanup_idle() == 0

    def test_cleanup_idle_skips_held_locks(self):
        """Held locks survive cleanup."""
        locks = IdentityLockRegistry()
        locks.lock_for("rabbitmq_user", "eve")
        with locks.hold("rabbitmq_user", "dan"):
            assert locks.cleanup_idle() == 1
            assert len(locks) == 1
            assert locks.lock_for("rabbitmq_user", "dan").locked()
        assert len(locks) == 0

    def test_cleanup_idle_skips_locked_locks(self):
        """A lock acquired directly is kept until released."""
        locks = IdentityLockRegistry()
        lock = locks.lock_for("rabbitmq_user", "dan")
        with lock:
            assert locks.cleanup_idle() == 0
        assert locks.cleanup_idle() == 1
