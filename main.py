#!/usr/bin/env python3
"""Run hostdock from a source checkout."""

from hostdock.hostdock import main

if __name__ == "__main__":
    main()
