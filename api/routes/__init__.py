"""
Routes module for the task planner API.

- tasks: task CRUD operations and completion
- nextdate: stateless repeat rule preview
"""
