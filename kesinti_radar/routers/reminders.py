from fastapi import APIRouter, Depends, Response

from kesinti_radar.dependencies import get_reminders
from kesinti_radar.schemas.outage import Outage
from kesinti_radar.tasks.scheduler import ReminderScheduler

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("/")
async def list_reminders(reminders: ReminderScheduler = Depends(get_reminders)):
    return reminders.pending()


@router.post("/")
async def schedule_reminder(outage: Outage, reminders: ReminderScheduler = Depends(get_reminders)):
    """Schedule a reminder ahead of an upcoming outage."""
    run_at = reminders.schedule(outage)
    return {"outage_id": str(outage.id), "scheduled": run_at is not None, "run_at": run_at}


@router.delete("/", status_code=204)
async def cancel_reminders(reminders: ReminderScheduler = Depends(get_reminders)):
    reminders.cancel_all()
    return Response(status_code=204)
