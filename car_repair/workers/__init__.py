"""
Worker process package.

Assembles the task-processing pipeline and runs it as a long-lived process.
"""
