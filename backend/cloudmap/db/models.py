from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class GenerationLog(Base):
    __tablename__ = "generation_logs"

    id = Column(Integer, primary_key=True)
    kind = Column(String(32), nullable=False)  # generate | adjust | cdk | chat
    architecture_id = Column(String(64), index=True)
    prompt = Column(Text, nullable=False)
    output = Column(Text)
    success = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "architectureId": self.architecture_id,
            "prompt": self.prompt,
            "output": self.output,
            "success": bool(self.success),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
