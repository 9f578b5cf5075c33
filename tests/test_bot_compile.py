import py_compile
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


def test_discord_modules_compile() -> None:
    """The Discord-facing modules should at least be syntactically valid.

    They are not imported by the other tests, so compiling them here catches
    a broken file without connecting to Discord.
    """

    for module in (
        "intake_bot/bot.py",
        "intake_bot/main.py",
        "intake_bot/commands/register.py",
        "intake_bot/commands/utils.py",
        "intake_bot/ui/views.py",
        "intake_bot/ui/modals.py",
    ):
        py_compile.compile(str(ROOT / module), doraise=True)
