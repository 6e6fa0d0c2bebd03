"""
Pure planner core: task model, recurrence expansion, completion tracking,
document migration and replica merge. Nothing here does I/O.
"""
