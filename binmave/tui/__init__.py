"""
Terminal UI for execution results.

A Textual application with two screens:

Usage:
    binmave results <execution-id> [--view tree]
    binmave compare <execution-id> --baseline <execution-id>

Components:
    - BinmaveApp: Main application class
    - ResultsScreen: Table / tree / aggregated view of one execution
    - CompareScreen: Path-level diff against a baseline execution
    - ResultTree: Navigator-backed tree widget
    - TreeNavigator: Selection and expansion state behind ResultTree
"""
