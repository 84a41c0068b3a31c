from __future__ import annotations

from types import SimpleNamespace

from keeper.cogs.backup import BackupCog


class SilentResponse:
    def __init__(self) -> None:
        self.sent = []

    async def send_message(self, *args, **kwargs):
        self.sent.append((args, kwargs))

    def is_done(self) -> bool:
        return bool(self.sent)


async def test_refused_interaction_is_left_to_the_error_handler():
    cog = BackupCog(SimpleNamespace(), service=None)
    interaction = SimpleNamespace(guild=None, response=SilentResponse())

    assert await cog.interaction_check(interaction) is False
    # The tree error handler sends the one refusal message
    assert interaction.response.sent == []
