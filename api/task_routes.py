"""Task CRUD routes.

Every change loads the user document, edits its task list and writes the
whole document back.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from auth.database import UserDatabase
from auth.models import Task, User
from .dependencies import get_user_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])


def parse_deadline(value: str) -> datetime:
    """Parse an RFC 3339 timestamp. The UTC offset is required."""
    try:
        deadline = datetime.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid deadline format")
    if deadline.tzinfo is None:
        raise HTTPException(status_code=400, detail="Invalid deadline format")
    return deadline


async def load_user(user_db: UserDatabase, email: str) -> User:
    user = await user_db.get_user_by_email(email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


async def save_user(user_db: UserDatabase, user: User) -> None:
    # The user may have been deleted since it was loaded
    if not await user_db.replace_user(user):
        raise HTTPException(status_code=404, detail="User not found")


@router.get("/tasks", response_model=list[Task])
async def get_tasks(email: str, user_db: UserDatabase = Depends(get_user_db)):
    """List all tasks of a user."""
    user = await load_user(user_db, email)
    return user.tasks


@router.get("/task", response_model=Task)
async def get_task(
    email: str, task_id: str, user_db: UserDatabase = Depends(get_user_db)
):
    """Get a single task by id."""
    user = await load_user(user_db, email)
    task = user.find_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.get("/createTask")
async def create_task(
    email: str,
    title: str,
    description: str,
    deadline: str,
    user_db: UserDatabase = Depends(get_user_db),
):
    """Append a new task and return its generated id."""
    task_deadline = parse_deadline(deadline)
    user = await load_user(user_db, email)

    task = Task(title=title, description=description, deadline=task_deadline)
    user.tasks.append(task)
    await save_user(user_db, user)

    logger.info(f"Task {task.id} created for {email}")
    return {"taskID": task.id}


@router.post("/updateTask")
async def update_task(
    email: str, updated: Task, user_db: UserDatabase = Depends(get_user_db)
):
    """Replace the task whose id matches the request body."""
    user = await load_user(user_db, email)

    for i, task in enumerate(user.tasks):
        if task.id == updated.id:
            user.tasks[i] = updated
            break
    else:
        raise HTTPException(status_code=404, detail="Task not found")

    await save_user(user_db, user)
    logger.info(f"Task {updated.id} updated for {email}")
    return {"status": "ok"}


@router.get("/deleteTask")
async def delete_task(
    email: str, task_id: str, user_db: UserDatabase = Depends(get_user_db)
):
    """Remove a task by id."""
    user = await load_user(user_db, email)

    remaining = [task for task in user.tasks if task.id != task_id]
    if len(remaining) == len(user.tasks):
        raise HTTPException(status_code=404, detail="Task not found")

    user.tasks = remaining
    await save_user(user_db, user)
    logger.info(f"Task {task_id} deleted for {email}")
    return {"status": "ok"}
