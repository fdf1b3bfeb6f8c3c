"""Scanner server and CLI integration modules.

Split into:
  - api.py    : all HTTP calls to the analysis server
  - runner.py : write the resolved properties and run sonar-scanner
  - types.py  : small shared data structures
"""
