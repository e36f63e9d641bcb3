#!/usr/bin/env python3
"""
Publish one simulated card detection to the status topic and exit.
Run from the project root: python -m scripts.simulate_card --uid A1B2C3D4 --balance 75.25
or: PYTHONPATH=. python scripts/simulate_card.py
"""
import os
import sys

# project root on PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cardbridge.services.broker.simulator import main


if __name__ == "__main__":
    main()
