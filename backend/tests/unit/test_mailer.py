import pytest

from unlinked.domain.identity import mailer
from unlinked.settings import settings


@pytest.mark.asyncio
async def test_notify_skips_without_smtp_host(monkeypatch):
    async def unexpected(*args, **kwargs):
        raise AssertionError("should not send")

    monkeypatch.setattr(mailer, "_send_email", unexpected)

    result = await mailer.notify("a@example.com", mailer.COMMENT, {"comment": "hi"})
    assert result is False


@pytest.mark.asyncio
async def test_notify_skips_without_address(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    assert await mailer.notify(None, mailer.CONNECTION_ACCEPTED, {}) is False


@pytest.mark.asyncio
async def test_notify_unknown_template():
    assert await mailer.notify("a@example.com", "nope", {}) is False


@pytest.mark.asyncio
async def test_notify_renders_and_escapes(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    sent = []

    async def capture(to_email, subject, body_html):
        sent.append((to_email, subject, body_html))

    monkeypatch.setattr(mailer, "_send_email", capture)

    result = await mailer.notify(
        "author@example.com",
        mailer.COMMENT,
        {
            "recipient_name": "Ann",
            "commenter_name": "Bo",
            "post_url": "https://app.example.com/posts/1",
            "comment": "<script>alert(1)</script>",
        },
    )

    assert result is True
    to_email, subject, body = sent[0]
    assert to_email == "author@example.com"
    assert subject == "New comment on your post"
    assert "<strong>Bo</strong>" in body
    assert "<script>" not in body
    assert "&lt;script&gt;" in body


@pytest.mark.asyncio
async def test_notify_swallows_transport_errors(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")

    async def broken(*args, **kwargs):
        raise OSError("connection refused")

    monkeypatch.setattr(mailer, "_send_email", broken)

    assert await mailer.notify("a@example.com", mailer.CONNECTION_ACCEPTED, {"accepter_name": "B"}) is False
