from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from .base import Base

# role_capability.permission
CAP_ALLOW = 1
CAP_PREVENT = -1
CAP_PROHIBIT = -1000


class ContextLevel:
    SYSTEM = 10
    USER = 30
    COURSECAT = 40
    COURSE = 50
    MODULE = 70


class Context(Base):
    __tablename__ = 'context'
    __table_args__ = (
        Index('context_level_instance_key', 'contextlevel', 'instance_id', unique=True),
    )

    id = Column(Integer, primary_key=True)
    contextlevel = Column(Integer, nullable=False)
    instance_id = Column(Integer, nullable=False, default=0)
    # Ids of all ancestors and self, e.g. "/1/3/15"
    path = Column(String(255))
    depth = Column(Integer, nullable=False, default=0)
    locked = Column(Boolean, nullable=False, default=False)

    def path_ids(self) -> list[int]:
        if not self.path:
            return [self.id]
        return [int(part) for part in self.path.split('/') if part]


class Role(Base):
    __tablename__ = 'role'

    id = Column(Integer, primary_key=True)
    shortname = Column(String(100), nullable=False, unique=True)

    capabilities = relationship("RoleCapability", back_populates="role", uselist=True, lazy="select")


class RoleCapability(Base):
    __tablename__ = 'role_capability'
    __table_args__ = (
        Index('role_capability_role_ctx_cap_key', 'role_id', 'context_id', 'capability', unique=True),
    )

    id = Column(Integer, primary_key=True)
    role_id = Column(ForeignKey('role.id', ondelete='CASCADE'), nullable=False)
    # Where the permission is defined; role definitions live in the system context,
    # deeper contexts hold overrides
    context_id = Column(ForeignKey('context.id', ondelete='CASCADE'), nullable=False)
    capability = Column(String(255), nullable=False, index=True)
    permission = Column(Integer, nullable=False, default=CAP_ALLOW)

    role = relationship("Role", back_populates="capabilities")


class RoleAssignment(Base):
    __tablename__ = 'role_assignment'
    __table_args__ = (
        Index('role_assignment_user_ctx_idx', 'user_id', 'context_id'),
    )

    id = Column(Integer, primary_key=True)
    role_id = Column(ForeignKey('role.id', ondelete='CASCADE'), nullable=False)
    context_id = Column(ForeignKey('context.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
