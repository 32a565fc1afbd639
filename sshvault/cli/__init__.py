"""sshvault command-line interface."""
