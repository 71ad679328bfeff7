from sqlalchemy import BigInteger, Column, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base


class QuizAttemptState:
    IN_PROGRESS = 'inprogress'
    OVERDUE = 'overdue'
    FINISHED = 'finished'
    ABANDONED = 'abandoned'

    # Attempts whose outcome can no longer change
    FINALIZED = (FINISHED, ABANDONED)


class Quiz(Base):
    __tablename__ = 'quiz'

    id = Column(Integer, primary_key=True)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(1333), nullable=False, default='')
    intro = Column(Text)
    grade = Column(Float, nullable=False, default=0.0)
    sumgrades = Column(Float, nullable=False, default=0.0)

    slots = relationship("QuizSlot", back_populates="quiz", order_by="QuizSlot.slot", uselist=True, lazy="select")
    attempts = relationship("QuizAttempt", back_populates="quiz", uselist=True, lazy="select")


class QuizSlot(Base):
    __tablename__ = 'quiz_slot'
    __table_args__ = (
        Index('quiz_slot_quiz_slot_key', 'quiz_id', 'slot', unique=True),
    )

    id = Column(Integer, primary_key=True)
    quiz_id = Column(ForeignKey('quiz.id', ondelete='CASCADE'), nullable=False)
    slot = Column(Integer, nullable=False)
    page = Column(Integer, nullable=False, default=1)
    maxmark = Column(Float, nullable=False, default=0.0)
    questionbankentry_id = Column(ForeignKey('question_bank_entry.id', ondelete='RESTRICT'), nullable=False)
    # NULL means "always use the latest ready version"
    version = Column(Integer)

    quiz = relationship("Quiz", back_populates="slots")


class QuizAttempt(Base):
    __tablename__ = 'quiz_attempt'
    __table_args__ = (
        Index('quiz_attempt_quiz_state_idx', 'quiz_id', 'state'),
    )

    id = Column(Integer, primary_key=True)
    quiz_id = Column(ForeignKey('quiz.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    attempt = Column(Integer, nullable=False, default=1)
    # question_usage.id holding the question attempts of this quiz attempt
    uniqueid = Column(ForeignKey('question_usage.id', ondelete='RESTRICT'), nullable=False, unique=True)
    state = Column(String(16), nullable=False, default=QuizAttemptState.IN_PROGRESS)
    timestart = Column(BigInteger, nullable=False, default=0)
    timefinish = Column(BigInteger, nullable=False, default=0)
    sumgrades = Column(Float)

    quiz = relationship("Quiz", back_populates="attempts")
