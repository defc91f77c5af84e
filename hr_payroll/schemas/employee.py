from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Dict, Optional
from datetime import datetime
from decimal import Decimal


class EmployeeCreate(BaseModel):
    """Schema for creating a new employee."""
    full_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    department: Optional[str] = Field(None, max_length=100)
    is_active: bool = True


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: str
    department: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class SalaryConfigUpdate(BaseModel):
    """Partial salary configuration; omitted fields keep their stored value."""
    basic_salary: Optional[Decimal] = Field(None, ge=0)
    transportation_allowance: Optional[Decimal] = Field(None, ge=0)
    housing_allowance: Optional[Decimal] = Field(None, ge=0)
    food_allowance: Optional[Decimal] = Field(None, ge=0)
    mobile_allowance: Optional[Decimal] = Field(None, ge=0)
    other_allowance: Optional[Decimal] = Field(None, ge=0)
    # Percentages
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    social_insurance_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    health_insurance_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    overtime_multiplier: Optional[Decimal] = Field(None, ge=0)


class SalaryConfigResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: int
    basic_salary: Decimal
    transportation_allowance: Decimal
    housing_allowance: Decimal
    food_allowance: Decimal
    mobile_allowance: Decimal
    other_allowance: Decimal
    tax_rate: Decimal
    social_insurance_rate: Decimal
    health_insurance_rate: Decimal
    overtime_multiplier: Decimal


class LeaveAllotmentUpdate(BaseModel):
    leave_type: str
    days: int = Field(..., ge=0)


class LeaveBalanceResponse(BaseModel):
    employee_id: int
    balances: Dict[str, int]
