"""
Branch and Counter master models (tenant database)
"""
from sqlalchemy import Column, String, Integer, ForeignKey
from sqlalchemy.orm import relationship

from rfidstock.database import Base


class BranchMaster(Base):
    """Branch model"""
    __tablename__ = "branch_master"

    branch_id = Column(Integer, primary_key=True, autoincrement=True)
    branch_name = Column(String(100), nullable=False)
    client_code = Column(String(50), nullable=False, index=True)

    counters = relationship("CounterMaster", back_populates="branch")


class CounterMaster(Base):
    """Counter model. A counter belongs to exactly one branch."""
    __tablename__ = "counter_master"

    counter_id = Column(Integer, primary_key=True, autoincrement=True)
    counter_name = Column(String(100), nullable=False)
    branch_id = Column(Integer, ForeignKey("branch_master.branch_id"), nullable=False)
    client_code = Column(String(50), nullable=False, index=True)

    branch = relationship("BranchMaster", back_populates="counters")
