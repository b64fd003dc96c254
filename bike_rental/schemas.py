"""
Pydantic schemas for rental records and predictions.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RentalRecord(BaseModel):
    """One row of bike_sharing.csv. The label is optional for inference inputs."""

    model_config = ConfigDict(frozen=True)

    season: float = Field(..., ge=1, le=4, description="Season code (1-4)")
    month: float = Field(..., ge=1, le=12)
    hour: float = Field(..., ge=0, le=23)
    holiday: float = Field(..., ge=0, le=1)
    weekday: float = Field(..., ge=0, le=6)
    workingday: float = Field(..., ge=0, le=1)
    weathercondition: float = Field(..., ge=1, le=4, description="Weather code (1-4)")
    temperature: float = Field(..., description="Temperature, raw units")
    humidity: float = Field(..., description="Humidity, raw units")
    windspeed: float = Field(..., description="Wind speed, raw units")
    rentaltype: Optional[bool] = Field(None, description="Rental type label")


class PredictionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    predicted_label: bool = Field(..., description="Predicted rental type")
    probability: float = Field(..., ge=0.0, le=1.0, description="Probability of rental type True")
    score: float = Field(..., description="Raw decision function value")
