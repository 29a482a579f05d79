"""
Core components of the compliance audit engine.

Contains:
- Data models (CheckDefinition, CheckResult, FamilyReport, ...)
- Check registry
- Check and family runners
- Family transcripts
"""
