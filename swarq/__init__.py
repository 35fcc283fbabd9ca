"""
Stop-and-wait ARQ engine.

Packages:
- arq: frames, timer, sender and receiver state machines
- channel: lossy, delayed network path
- utils: statistics and logging
"""
