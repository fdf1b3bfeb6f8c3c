"""Maven integration modules.

Split into:
  - executor.py   : run Maven goals as child processes and collect the output
  - build_plan.py : optional YAML plan describing which builds to run
"""
