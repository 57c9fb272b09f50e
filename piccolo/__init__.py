"""Piccolo: a minimal edge reconciliation agent.

On every tick the agent:
 - authenticates against the control plane
 - pulls the catalogs (desired state) assigned to its site
 - starts any declared container that is not already running
 - sleeps, then does it all again

Nothing is remembered between ticks; desired and observed state are re-read each time.
"""

__version__ = "0.0.1"
