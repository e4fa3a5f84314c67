"""Demo users and projects for a fresh database."""
import logging
from .schema import Attachment, Priority, Project, Role, Status, Task, User
from .store import BoardStore

logger = logging.getLogger(__name__)

DEMO_USERS = [
    User("u1", "Alice Johnson", "alice@example.com", Role.ADMIN),
    User("u2", "Bob Smith", "bob@example.com", Role.MODERATOR),
    User("u3", "Charlie Kim", "charlie@example.com", Role.MEMBER),
]


def demo_projects():
    """(project, tasks) pairs. Built fresh on each call; tasks are mutable."""
    p1 = Project("p1", "Task Board MVP")
    p1_tasks = [
        Task("t1", "Design Login Page",
             "Create high-fidelity mockups for the login flow including error states.",
             Priority.HIGH, Status.DONE, "u1", "2025-12-20", "p1",
             [Attachment.from_raw("design-v1.fig"), Attachment.from_raw("requirements.pdf")]),
        Task("t2", "Setup Project Repo", "Initialize the app and configure linting rules.",
             Priority.MEDIUM, Status.DONE, "u2", "2025-12-18", "p1"),
        Task("t3", "Research Database Options", "Compare hosted database options for our use case.",
             Priority.LOW, Status.DONE, "u3", "2025-12-15", "p1"),
        Task("t4", "Implement Drag and Drop", "Allow moving tasks between columns.",
             Priority.HIGH, Status.IN_PROGRESS, "u1", "2025-12-25", "p1"),
        Task("t5", "API Integration", "Connect forms to the task tables.",
             Priority.HIGH, Status.TODO, "u2", "2025-12-30", "p1"),
        Task("t6", "Bug: Modal Overlay", "Fix the z-index issue on mobile view.",
             Priority.MEDIUM, Status.REVIEW, "u3", "2025-12-21", "p1"),
    ]
    p2 = Project("p2", "Marketing Q1")
    p2_tasks = [
        Task("p2-t1", "Marketing Campaign", "Plan Q1 marketing strategy.",
             Priority.HIGH, Status.IN_PROGRESS, "u1", "2026-01-15", "p2"),
        Task("p2-t2", "Social Media Assets", "Create banner images for Twitter and LinkedIn.",
             Priority.MEDIUM, Status.TODO, "u3", "2026-01-10", "p2"),
        Task("p2-t3", "SEO Audit", "Identify keywords for the landing page.",
             Priority.LOW, Status.DONE, "u2", "2025-12-10", "p2"),
    ]
    return [(p1, p1_tasks), (p2, p2_tasks)]


def seed(store: BoardStore) -> None:
    """Write the demo data. Existing rows with the same ids are overwritten."""
    for user in DEMO_USERS:
        store.save_user(user)
    for project, tasks in demo_projects():
        store.save_project(project)
        for task in tasks:
            store.save_task(task)
    logger.info(f"Seeded {len(DEMO_USERS)} users and demo projects into {store.db_path}")
