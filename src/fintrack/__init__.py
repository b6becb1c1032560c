"""Bank statement CSV import and tracking."""

__version__ = "0.1.0"


# The CLI pulls in every service, so load it only on first use
def __getattr__(name):
    if name == "main":
        from fintrack.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
