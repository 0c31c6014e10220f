# medbot/runtime/outcomes.py
"""
Routing tokens returned by pipeline nodes.

Non-terminal stages return CONTINUE or one of the exit routes; terminal nodes
return the outcome of the whole run. Plain strings: pocketflow
looks successors up by action name.
"""

CONTINUE = "continue"
EMERGENCY = "emergency"
BLOCKED = "blocked"
ERROR = "error"
SUCCESS = "success"
