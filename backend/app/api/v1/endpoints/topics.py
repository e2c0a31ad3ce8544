"""
Project topic endpoints

Teachers submit and edit topics, the coordinator (or admin) reviews them.
Every signed-in user can browse approved topics; students get them split
into their own topic, available topics and taken topics.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.models.topic import TopicStatus
from app.models.user import User, UserRole
from app.modules.auth.dependencies import get_current_user, get_current_admin, require_roles
from app.schemas.group import MessageResponse
from app.schemas.topic import (
    TopicCreate,
    TopicUpdate,
    TopicReview,
    TopicResponse,
    TopicCatalogResponse,
)
from app.services.topic_registry import TopicRegistry


router = APIRouter()

reviewers = require_roles(UserRole.COORDINATOR, UserRole.ADMIN)


@router.post("", response_model=TopicResponse, status_code=status.HTTP_201_CREATED)
async def submit_topic(
    topic_data: TopicCreate,
    current_user: User = Depends(require_roles(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    """Submit a topic for review"""
    topic = await TopicRegistry(db).submit_topic(current_user.id, topic_data)
    return TopicResponse.model_validate(topic)


@router.get("/approved")
async def list_approved_topics(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Approved topics.

    Students receive {hasSelectedTopic, myTopic, availableTopics, takenTopics};
    everyone else receives the plain list.
    """
    registry = TopicRegistry(db)
    if current_user.role == UserRole.STUDENT:
        split = await registry.categorize_for_student(current_user.id)
        catalog = TopicCatalogResponse(
            has_selected_topic=split["has_selected_topic"],
            my_topic=TopicResponse.model_validate(split["my_topic"]) if split["my_topic"] else None,
            available_topics=[TopicResponse.model_validate(t) for t in split["available_topics"]],
            taken_topics=[TopicResponse.model_validate(t) for t in split["taken_topics"]],
        )
        return catalog.model_dump(by_alias=True, mode="json")

    topics = await registry.list_by_status(TopicStatus.APPROVED)
    return [TopicResponse.model_validate(t).model_dump(mode="json") for t in topics]


@router.get("/pending", response_model=List[TopicResponse])
async def list_pending_topics(
    current_user: User = Depends(reviewers),
    db: AsyncSession = Depends(get_db)
):
    topics = await TopicRegistry(db).list_by_status(TopicStatus.PENDING)
    return [TopicResponse.model_validate(t) for t in topics]


@router.get("/rejected", response_model=List[TopicResponse])
async def list_rejected_topics(
    current_user: User = Depends(reviewers),
    db: AsyncSession = Depends(get_db)
):
    topics = await TopicRegistry(db).list_by_status(TopicStatus.REJECTED)
    return [TopicResponse.model_validate(t) for t in topics]


@router.get("/my", response_model=List[TopicResponse])
async def list_my_topics(
    current_user: User = Depends(require_roles(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    """Topics submitted by the current teacher, any status"""
    topics = await TopicRegistry(db).list_by_teacher(current_user.id)
    return [TopicResponse.model_validate(t) for t in topics]


@router.put("/{topic_id}", response_model=TopicResponse)
async def update_topic(
    topic_id: int,
    changes: TopicUpdate,
    current_user: User = Depends(require_roles(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    topic = await TopicRegistry(db).update_topic(topic_id, current_user.id, changes)
    return TopicResponse.model_validate(topic)


@router.delete("/{topic_id}", response_model=MessageResponse)
async def delete_topic(
    topic_id: int,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await TopicRegistry(db).delete_topic(topic_id)
    return MessageResponse(message="Topic deleted successfully")


@router.post("/{topic_id}/approve", response_model=TopicResponse)
async def approve_topic(
    topic_id: int,
    review: Optional[TopicReview] = None,
    current_user: User = Depends(reviewers),
    db: AsyncSession = Depends(get_db)
):
    feedback = review.feedback if review else None
    topic = await TopicRegistry(db).approve_topic(topic_id, current_user.id, feedback)
    return TopicResponse.model_validate(topic)


@router.post("/{topic_id}/reject", response_model=TopicResponse)
async def reject_topic(
    topic_id: int,
    review: Optional[TopicReview] = None,
    current_user: User = Depends(reviewers),
    db: AsyncSession = Depends(get_db)
):
    feedback = review.feedback if review else None
    topic = await TopicRegistry(db).reject_topic(topic_id, current_user.id, feedback)
    return TopicResponse.model_validate(topic)
