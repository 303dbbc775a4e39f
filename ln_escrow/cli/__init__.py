"""ln_escrow.cli — operator tooling (`ln-escrow`)."""
