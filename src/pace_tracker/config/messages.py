"""User-facing CLI messages for pace-tracker."""

PROJECT_TAGLINE = "Track what you work on, with pauses, from the terminal"

HELP_TEXT = f"""
[bold cyan]pace[/bold cyan] - {PROJECT_TAGLINE}

[bold]Commands:[/bold]
  [cyan]setup[/cyan]     Write a default config and create the database
  [cyan]begin[/cyan]     Start an activity
  [cyan]hold[/cyan]      Pause the current activity
  [cyan]resume[/cyan]    Resume the held activity
  [cyan]end[/cyan]       End the current activity
  [cyan]now[/cyan]       Show the current activity
  [cyan]adjust[/cyan]    Edit the current activity
  [cyan]migrate[/cyan]   Apply or revert schema migrations

[bold]Examples:[/bold]
  [dim]$ pace begin "write docs" --category writing --tags docs,api[/dim]
  [dim]$ pace hold --reason lunch[/dim]
  [dim]$ pace resume --at 13:15[/dim]
  [dim]$ pace end[/dim]
"""

SUCCESS_MESSAGES = {
    "setup": "Configuration written to {path}",
    "schema_ready": "Database ready at {path} (schema {version})",
    "began": "Began '{description}' at {time}",
    "held": "Held '{description}' at {time}",
    "resumed": "Resumed '{description}' at {time}",
    "ended": "Ended '{description}' at {time}, worked {duration}",
    "adjusted": "Adjusted '{description}'",
    "migrated": "Applied {count} migration(s), schema at {version}",
    "reverted": "Reverted {count} migration(s)",
}

INFO_MESSAGES = {
    "config_exists": "Configuration already exists at {path}",
    "no_current": "No activity is currently active or held.",
    "up_to_date": "Schema is up to date ({version})",
    "nothing_to_revert": "Nothing to revert",
}

WARNING_MESSAGES = {
    "force_closed": "Ended '{description}' to begin a new activity",
}
