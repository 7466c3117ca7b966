import pytest

from unlinked.domain.common.exceptions import DependencyFailure
from unlinked.infra.hooks import PostCommitHooks


@pytest.mark.asyncio
async def test_failing_hook_is_contained_and_later_hooks_run():
    ran = []

    async def boom():
        raise RuntimeError("side channel down")

    async def ok():
        ran.append("ok")

    hooks = PostCommitHooks("unit")
    hooks.add("boom", boom)
    hooks.add("ok", ok)
    await hooks.run()

    assert ran == ["ok"]
    assert len(hooks.failures) == 1
    failure = hooks.failures[0]
    assert isinstance(failure, DependencyFailure)
    assert str(failure) == "unit:boom"
    assert isinstance(failure.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_deferred_hooks_go_to_deferrer_after_immediate_ones():
    order = []
    deferred = []

    async def immediate():
        order.append("immediate")

    async def later():
        order.append("later")

    hooks = PostCommitHooks("unit", defer=lambda *args: deferred.append(args))
    hooks.add_deferred("later", later)
    hooks.add("immediate", immediate)
    assert len(hooks) == 2

    await hooks.run()
    assert order == ["immediate"]

    func, name, hook = deferred[0]
    await func(name, hook)
    assert order == ["immediate", "later"]


@pytest.mark.asyncio
async def test_deferred_hooks_run_inline_without_deferrer():
    order = []

    async def first():
        order.append("first")

    async def last():
        order.append("last")

    hooks = PostCommitHooks("unit")
    hooks.add_deferred("last", last)
    hooks.add("first", first)
    await hooks.run()

    assert order == ["first", "last"]
