"""
Content Engine render backend.

Turns persisted scene specifications into rendered long-form videos:
asset preparation, generated Remotion code, static validation, dispatch to an
isolated render worker and bounded completion polling.
"""
