from sqlalchemy import BigInteger, Column, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base

# question.questiontextformat
FORMAT_MOODLE = 0
FORMAT_HTML = 1
FORMAT_PLAIN = 2
FORMAT_MARKDOWN = 4


class QuestionVersionStatus:
    READY = 'ready'
    HIDDEN = 'hidden'
    DRAFT = 'draft'


class QuestionBankEntry(Base):
    __tablename__ = 'question_bank_entry'

    id = Column(Integer, primary_key=True)
    questioncategory_id = Column(Integer, nullable=False, default=0)
    idnumber = Column(String(100))
    owner_id = Column(Integer)

    versions = relationship("QuestionVersion", back_populates="bank_entry", order_by="QuestionVersion.id", uselist=True, lazy="select")


class Question(Base):
    __tablename__ = 'question'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, default='')
    questiontext = Column(Text, nullable=False, default='')
    questiontextformat = Column(Integer, nullable=False, default=FORMAT_MOODLE)
    defaultmark = Column(Float, nullable=False, default=1.0)
    qtype = Column(String(20), nullable=False, default='')
    parent = Column(Integer, nullable=False, default=0)


class QuestionVersion(Base):
    __tablename__ = 'question_version'
    __table_args__ = (
        Index('question_version_entry_version_key', 'questionbankentry_id', 'version', unique=True),
    )

    id = Column(Integer, primary_key=True)
    questionbankentry_id = Column(ForeignKey('question_bank_entry.id', ondelete='CASCADE'), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    question_id = Column(ForeignKey('question.id', ondelete='CASCADE'), nullable=False, unique=True)
    status = Column(String(10), nullable=False, default=QuestionVersionStatus.READY)

    bank_entry = relationship("QuestionBankEntry", back_populates="versions")
    question = relationship("Question")


class QuestionUsage(Base):
    __tablename__ = 'question_usage'

    id = Column(Integer, primary_key=True)
    context_id = Column(ForeignKey('context.id', ondelete='CASCADE'), nullable=False)
    component = Column(String(255), nullable=False, default='mod_quiz')
    preferredbehaviour = Column(String(32), nullable=False, default='deferredfeedback')

    question_attempts = relationship("QuestionAttempt", back_populates="usage", order_by="QuestionAttempt.slot", uselist=True, lazy="select")


class QuestionAttempt(Base):
    __tablename__ = 'question_attempt'
    __table_args__ = (
        Index('question_attempt_usage_slot_key', 'questionusage_id', 'slot', unique=True),
    )

    id = Column(Integer, primary_key=True)
    questionusage_id = Column(ForeignKey('question_usage.id', ondelete='CASCADE'), nullable=False)
    slot = Column(Integer, nullable=False)
    behaviour = Column(String(32), nullable=False, default='deferredfeedback')
    question_id = Column(ForeignKey('question.id', ondelete='RESTRICT'), nullable=False)
    maxmark = Column(Float, nullable=False, default=0.0)
    responsesummary = Column(Text)

    usage = relationship("QuestionUsage", back_populates="question_attempts")
    steps = relationship("QuestionAttemptStep", back_populates="question_attempt", order_by="QuestionAttemptStep.sequencenumber", uselist=True, lazy="select")


class QuestionAttemptStep(Base):
    __tablename__ = 'question_attempt_step'
    __table_args__ = (
        Index('question_attempt_step_attempt_seq_key', 'questionattempt_id', 'sequencenumber', unique=True),
    )

    id = Column(Integer, primary_key=True)
    questionattempt_id = Column(ForeignKey('question_attempt.id', ondelete='CASCADE'), nullable=False)
    sequencenumber = Column(Integer, nullable=False)
    state = Column(String(13), nullable=False, default='todo')
    fraction = Column(Float)
    timecreated = Column(BigInteger, nullable=False, default=0)
    user_id = Column(Integer)

    question_attempt = relationship("QuestionAttempt", back_populates="steps")
