"""hgmirror command line interface."""
