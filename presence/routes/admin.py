from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends

from presence.dependencies import get_store, verify_admin
from presence.services.attendance import attendance_stats, list_attendance

# Define the router with the /admin prefix
router = APIRouter(
    prefix="/admin",
    tags=["Admin & Reports"]
)


@router.get("/attendance", response_model=List[Dict[str, Any]])
def get_attendance(
    class_id: Optional[str] = None,
    lecture_id: Optional[str] = None,
    limit: int = 500,
    admin: bool = Depends(verify_admin),
    store=Depends(get_store),
):
    """Fetches raw attendance records, newest first."""
    return list_attendance(store, class_id=class_id, lecture_id=lecture_id, limit=limit)


@router.get("/attendance_summary", response_model=Dict[str, Any])
def get_summary(class_id: Optional[str] = None, admin: bool = Depends(verify_admin), store=Depends(get_store)):
    """Totals across all records plus present counts per student."""
    rows = list_attendance(store, class_id=class_id)
    stats = attendance_stats(rows)

    by_student = {}
    for r in rows:
        student_id = r.get("student_id") or "Unknown"
        by_student[student_id] = by_student.get(student_id, 0) + (1 if r.get("status") == "Present" else 0)

    return {
        "total_present": stats["present"],
        "total_absent": stats["absent"],
        "percentage": stats["percentage"],
        "by_student": by_student,
    }
