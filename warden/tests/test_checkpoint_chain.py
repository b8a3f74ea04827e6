import pytest

from warden.core.auth.constants import REASON_NOT_ACTIVATED, REASON_THROTTLED
from warden.core.auth.results import LoginAttempt, Rejection
from warden.core.checkpoints import ActivationCheckpoint, Checkpoint, CheckpointChain, ThrottleCheckpoint
from warden.core.errors import ConfigurationError
from warden.core.throttling import ScopePolicy, ThrottleEngine

pytestmark = pytest.mark.unit


class SpyCheckpoint(Checkpoint):
    def __init__(self, name, calls, reject=False, fail_result=None):
        self.name = name
        self.calls = calls
        self.reject = reject
        self.fail_result = fail_result

    def login(self, user_id, attempt):
        self.calls.append(("login", self.name))
        return Rejection(reason="blocked") if self.reject else None

    def check(self, user_id):
        self.calls.append(("check", self.name))
        return Rejection(reason="blocked") if self.reject else None

    def fail(self, attempt):
        self.calls.append(("fail", self.name))
        return self.fail_result


def _attempt(clock, user_id=None):
    return LoginAttempt(credentials={"email": "x@example.com"}, at=clock.now(), ip_address="8.8.8.8", user_id=user_id)


def test_first_rejection_halts_the_chain(clock):
    calls = []
    chain = CheckpointChain(
        [SpyCheckpoint("a", calls), SpyCheckpoint("b", calls, reject=True), SpyCheckpoint("c", calls)]
    )

    rejection = chain.run("1", _attempt(clock, "1"))

    assert rejection.reason == "blocked"
    assert rejection.checkpoint == "b"
    assert calls == [("login", "a"), ("login", "b")]


def test_notify_failure_invokes_every_fail_hook_once(clock):
    calls = []
    standing = Rejection(reason=REASON_THROTTLED, retry_after=12.0)
    chain = CheckpointChain(
        [
            SpyCheckpoint("a", calls, reject=True),
            SpyCheckpoint("b", calls, fail_result=standing),
            SpyCheckpoint("c", calls, fail_result=Rejection(reason="later")),
        ]
    )

    rejection = chain.notify_failure(_attempt(clock))

    assert calls == [("fail", "a"), ("fail", "b"), ("fail", "c")]
    assert rejection is standing
    assert rejection.checkpoint == "b"


def test_check_runs_in_order(clock):
    calls = []
    chain = CheckpointChain([SpyCheckpoint("a", calls), SpyCheckpoint("b", calls)])
    assert chain.check("1") is None
    assert calls == [("check", "a"), ("check", "b")]


def test_from_names_fails_fast_on_unknown_checkpoint():
    factories = {"activation": lambda: ActivationCheckpoint(users=None)}
    with pytest.raises(ConfigurationError, match=r"Invalid checkpoint \[swipe\] given\."):
        CheckpointChain.from_names(["activation", "swipe"], factories)


def test_duplicate_checkpoint_is_rejected():
    with pytest.raises(ConfigurationError):
        CheckpointChain([Checkpoint(), Checkpoint()])


def test_bypassed_chain_lets_everything_through(clock):
    calls = []
    chain = CheckpointChain([SpyCheckpoint("a", calls, reject=True, fail_result=Rejection(reason="x"))])

    with chain.bypassed():
        assert not chain.enabled
        assert chain.run("1", _attempt(clock, "1")) is None
        assert chain.notify_failure(_attempt(clock)) is None
        assert chain.check("1") is None

    assert chain.enabled
    assert calls == []
    assert chain.run("1", _attempt(clock, "1")) is not None


def test_activation_checkpoint_rejects_pending_users(users, clock):
    users.add(1, "live@example.com", "pw", activated=True)
    users.add(2, "new@example.com", "pw", activated=False)
    checkpoint = ActivationCheckpoint(users)

    assert checkpoint.login("1", _attempt(clock, "1")) is None
    rejection = checkpoint.login("2", _attempt(clock, "2"))
    assert rejection.reason == REASON_NOT_ACTIVATED
    assert rejection.public_dict() == {"reason": REASON_NOT_ACTIVATED}
    assert checkpoint.check("2").reason == REASON_NOT_ACTIVATED


def test_throttle_checkpoint_does_not_extend_a_standing_lockout(clock):
    engine = ThrottleEngine({"user": ScopePolicy.from_config(3600, {2: 60})}, clock=clock)
    checkpoint = ThrottleCheckpoint(engine)
    attempt = _attempt(clock, "1")

    assert checkpoint.fail(attempt) is None
    assert checkpoint.fail(attempt) is None
    clock.advance(seconds=30)

    rejection = checkpoint.fail(_attempt(clock, "1"))
    assert rejection.reason == REASON_THROTTLED
    assert rejection.scope == "user"
    assert rejection.retry_after == pytest.approx(30)
    assert rejection.public_dict() == {"reason": REASON_THROTTLED, "retry_after": pytest.approx(30)}

    clock.advance(seconds=31)
    assert checkpoint.login("1", _attempt(clock, "1")) is None
