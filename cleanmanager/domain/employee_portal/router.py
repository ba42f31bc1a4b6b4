"""Employee self-service router (employee session cookie)"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ... import email_service
from ...auth import get_current_employee
from ...database import get_db
from ...models import Employee
from ..company.notifications import is_notification_enabled
from .schemas import EmployeeJobResponse, to_employee_job_response
from .service import EmployeeJobService

router = APIRouter(prefix="/employee", tags=["Employee"])


def get_employee_job_service(db: Session = Depends(get_db)) -> EmployeeJobService:
    return EmployeeJobService(db)


@router.get("/jobs", response_model=list[EmployeeJobResponse])
async def get_my_jobs(
    status: Optional[str] = Query(None),
    filter: Optional[Literal["today", "week", "all"]] = Query(None),
    employee: Employee = Depends(get_current_employee),
    service: EmployeeJobService = Depends(get_employee_job_service),
):
    return [to_employee_job_response(job) for job in service.get_jobs(employee, status, filter)]


@router.get("/jobs/{job_id}", response_model=EmployeeJobResponse)
async def get_my_job(
    job_id: int,
    employee: Employee = Depends(get_current_employee),
    service: EmployeeJobService = Depends(get_employee_job_service),
):
    return to_employee_job_response(service.get_job(job_id, employee))


@router.post("/jobs/{job_id}/accept", response_model=EmployeeJobResponse)
async def accept_job(
    job_id: int,
    employee: Employee = Depends(get_current_employee),
    service: EmployeeJobService = Depends(get_employee_job_service),
):
    job = service.accept_job(job_id, employee)

    company = employee.company
    if company and company.email and is_notification_enabled(company, "employeeUpdates"):
        await email_service.send_best_effort(
            email_service.send_job_update_notification(
                company.email,
                company.name,
                job.title,
                "accepted",
                f"{employee.first_name} {employee.last_name}",
            ),
            f"acceptance notification for job {job.id}",
        )

    return to_employee_job_response(job)
