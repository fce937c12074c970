#!/usr/bin/env python3

# local modules
from gator.cli import cli

if __name__ == "__main__":
    cli(prog_name="gator")
