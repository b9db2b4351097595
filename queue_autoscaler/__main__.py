"""
Entry point for running the autoscaler with ``python -m queue_autoscaler``.
"""
import sys

from queue_autoscaler.main import main

sys.exit(main())
