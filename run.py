#!/usr/bin/env python3
"""
RaidTrack Bot Runner

This is the main entry point to run the RaidTrack Discord Bot.
Simply run: python run.py
"""

import sys
from raidtrack.bot import main
from raidtrack.utils import SingleInstanceLock

if __name__ == "__main__":
    # Ensure only one instance is running
    lock = SingleInstanceLock()
    if not lock.acquire():
        holder = lock.holder_pid()
        owner = f" as PID {holder}" if holder else ""
        print(f"❌ Error: Another instance of RaidTrack is already running{owner} (checked {lock.lock_file_path}).")
        print("Please stop the existing instance before starting a new one.")
        sys.exit(1)

    try:
        main()
    finally:
        lock.release()
