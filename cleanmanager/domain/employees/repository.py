"""Employee repository - Database operations for employees"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import AuthSession, Employee, Job, User


class EmployeeRepository:
    @staticmethod
    def get_employees(db: Session, company_id: int, status: Optional[str] = None) -> list[Employee]:
        query = db.query(Employee).filter(Employee.company_id == company_id)
        if status:
            query = query.filter(Employee.status == status)
        return query.order_by(Employee.created_at.desc(), Employee.id.desc()).all()

    @staticmethod
    def get_employee_by_id(db: Session, employee_id: int, company_id: int) -> Optional[Employee]:
        return (
            db.query(Employee)
            .filter(Employee.id == employee_id, Employee.company_id == company_id)
            .first()
        )

    @staticmethod
    def count_employees(db: Session, company_id: int) -> int:
        return db.query(Employee).filter(Employee.company_id == company_id).count()

    @staticmethod
    def find_by_email(
        db: Session, company_id: int, email: str, exclude_id: Optional[int] = None
    ) -> Optional[Employee]:
        query = db.query(Employee).filter(Employee.company_id == company_id, Employee.email == email)
        if exclude_id is not None:
            query = query.filter(Employee.id != exclude_id)
        return query.first()

    @staticmethod
    def find_by_phone(
        db: Session, company_id: int, phone: str, exclude_id: Optional[int] = None
    ) -> Optional[Employee]:
        query = db.query(Employee).filter(Employee.company_id == company_id, Employee.phone == phone)
        if exclude_id is not None:
            query = query.filter(Employee.id != exclude_id)
        return query.first()

    @staticmethod
    def company_user_with_email(db: Session, company_id: int, email: str) -> Optional[User]:
        return db.query(User).filter(User.company_id == company_id, User.email == email).first()

    @staticmethod
    def active_jobs_for(db: Session, company_id: int, employee_id: int) -> list[Job]:
        return (
            db.query(Job)
            .filter(
                Job.company_id == company_id,
                Job.assigned_to == employee_id,
                Job.status.in_(["scheduled", "in_progress"]),
            )
            .all()
        )

    @staticmethod
    def create_employee(db: Session, company_id: int, **employee_data) -> Employee:
        employee = Employee(company_id=company_id, **employee_data)
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    @staticmethod
    def update_employee(db: Session, employee: Employee, **updates) -> Employee:
        for key, value in updates.items():
            if hasattr(employee, key):
                setattr(employee, key, value)
        db.commit()
        db.refresh(employee)
        return employee

    @staticmethod
    def delete_employee(db: Session, employee: Employee) -> None:
        """Remove the employee with its sessions and shifts; past jobs keep no assignee"""
        db.query(AuthSession).filter(AuthSession.employee_id == employee.id).delete()
        db.query(Job).filter(
            Job.company_id == employee.company_id, Job.assigned_to == employee.id
        ).update({Job.assigned_to: None}, synchronize_session=False)
        db.delete(employee)
        db.commit()
