from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from mlm_ledger.db.base_class import Base

class JobRun(Base):
    __tablename__ = "job_run"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    job_type = Column(String(50), nullable=False, index=True) # weekly_payout, pool_distribution, ...
    status = Column(String(20), nullable=False, default="running", index=True)
    # running, success, partial_success, failed
    started_at = Column(DateTime, nullable=False)
    finished_at = Column(DateTime, nullable=True)
    details = Column(JSON, nullable=True)
    error = Column(Text, nullable=True)

    def __repr__(self):
        return f"<JobRun(id={self.id}, job_type='{self.job_type}', status='{self.status}')>"
