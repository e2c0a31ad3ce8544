"""Pydantic schemas for project topics"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime

from app.models.topic import TopicStatus, TopicComplexity


class TopicCreate(BaseModel):
    """Teacher submission of a new topic"""
    title: str = Field(..., min_length=3, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    technology: str = Field(..., min_length=1, max_length=255)
    project_type: str = Field(..., min_length=1, max_length=100)
    estimated_complexity: TopicComplexity = TopicComplexity.MEDIUM


class TopicUpdate(BaseModel):
    """Edit of a pending topic by its submitter"""
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    technology: Optional[str] = Field(None, min_length=1, max_length=255)
    project_type: Optional[str] = Field(None, min_length=1, max_length=100)
    estimated_complexity: Optional[TopicComplexity] = None


class TopicReview(BaseModel):
    """Coordinator decision payload"""
    feedback: Optional[str] = Field(None, max_length=2000)


class SubmitterSummary(BaseModel):
    id: int
    first_name: str
    last_name: str

    model_config = ConfigDict(from_attributes=True)


class TopicResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    technology: str
    project_type: str
    estimated_complexity: TopicComplexity
    status: TopicStatus
    feedback: Optional[str] = None
    submitted_by_id: int
    submitted_by: Optional[SubmitterSummary] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TopicCatalogResponse(BaseModel):
    """Approved topics split for a student: mine, still available, taken"""
    has_selected_topic: bool = Field(..., alias="hasSelectedTopic")
    my_topic: Optional[TopicResponse] = Field(None, alias="myTopic")
    available_topics: List[TopicResponse] = Field(default_factory=list, alias="availableTopics")
    taken_topics: List[TopicResponse] = Field(default_factory=list, alias="takenTopics")

    model_config = ConfigDict(populate_by_name=True)
