"""Discord modals, views and embeds."""
