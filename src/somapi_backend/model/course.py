from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base

# user_enrolment.status
ENROL_USER_ACTIVE = 0
ENROL_USER_SUSPENDED = 1


class CourseCategory(Base):
    __tablename__ = 'course_category'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    parent_id = Column(ForeignKey('course_category.id', ondelete='SET NULL'))
    visible = Column(Boolean, nullable=False, default=True)

    courses = relationship("Course", back_populates="category", uselist=True, lazy="select")


class Course(Base):
    __tablename__ = 'course'

    id = Column(Integer, primary_key=True)
    # NULL only for the site course
    category_id = Column(ForeignKey('course_category.id', ondelete='RESTRICT'), index=True)
    fullname = Column(String(254), nullable=False, default='')
    shortname = Column(String(255), nullable=False, default='')
    idnumber = Column(String(100), nullable=False, default='')
    summary = Column(Text)
    visible = Column(Boolean, nullable=False, default=True)

    category = relationship("CourseCategory", back_populates="courses")
    course_modules = relationship("CourseModule", back_populates="course", uselist=True, lazy="select")


class Module(Base):
    __tablename__ = 'module'

    id = Column(Integer, primary_key=True)
    name = Column(String(20), nullable=False, unique=True)


class CourseModule(Base):
    __tablename__ = 'course_module'
    __table_args__ = (
        Index('course_module_module_instance_idx', 'module_id', 'instance'),
    )

    id = Column(Integer, primary_key=True)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE'), nullable=False, index=True)
    module_id = Column(ForeignKey('module.id', ondelete='RESTRICT'), nullable=False)
    instance = Column(Integer, nullable=False)
    visible = Column(Boolean, nullable=False, default=True)
    deletion_in_progress = Column(Boolean, nullable=False, default=False)

    course = relationship("Course", back_populates="course_modules")
    module = relationship("Module")


class Enrolment(Base):
    __tablename__ = 'user_enrolment'
    __table_args__ = (
        Index('user_enrolment_course_user_key', 'course_id', 'user_id', unique=True),
    )

    id = Column(Integer, primary_key=True)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    status = Column(Integer, nullable=False, default=ENROL_USER_ACTIVE)
