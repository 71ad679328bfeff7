from sqlalchemy import BigInteger, Boolean, Column, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from .base import Base


class User(Base):
    __tablename__ = 'user'

    id = Column(Integer, primary_key=True)
    username = Column(String(100), nullable=False, unique=True)
    # External identifier, exposed as "ucid"
    idnumber = Column(String(255), nullable=False, default='')
    firstname = Column(String(100), nullable=False, default='')
    lastname = Column(String(100), nullable=False, default='')
    email = Column(String(100), nullable=False, default='')
    deleted = Column(Boolean, nullable=False, default=False)
    suspended = Column(Boolean, nullable=False, default=False)


class ExternalService(Base):
    __tablename__ = 'external_service'

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, unique=True)
    shortname = Column(String(255), unique=True)
    component = Column(String(100))
    enabled = Column(Boolean, nullable=False, default=False)
    restrictedusers = Column(Boolean, nullable=False, default=True)

    authorised_users = relationship("ExternalServiceUser", back_populates="service", uselist=True, lazy="select")


class ExternalServiceUser(Base):
    __tablename__ = 'external_service_user'
    __table_args__ = (
        Index('external_service_user_service_user_key', 'externalservice_id', 'user_id', unique=True),
    )

    id = Column(Integer, primary_key=True)
    externalservice_id = Column(ForeignKey('external_service.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    # Unix timestamp, NULL means no expiry
    validuntil = Column(BigInteger)

    service = relationship("ExternalService", back_populates="authorised_users")


class ExternalToken(Base):
    __tablename__ = 'external_token'

    id = Column(Integer, primary_key=True)
    token = Column(String(128), nullable=False, unique=True)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    externalservice_id = Column(ForeignKey('external_service.id', ondelete='CASCADE'), nullable=False)
    validuntil = Column(BigInteger)
    lastaccess = Column(BigInteger)

    user = relationship("User")
    service = relationship("ExternalService")
