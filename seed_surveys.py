#!/usr/bin/env python
from surveyhub.db import Base
from surveyhub.db.session import LocalSession, engine
from surveyhub.db.models import Survey
from surveyhub.app.services import surveys
from surveyhub.app.services.tokens import issue_access_token

DEMO_OWNER = "demo-owner"

DEMO_SURVEY = {
    "title": "Team offsite feedback",
    "description": "Tell us how the offsite went.",
    "questions": [
        {"question": "What did you like most?", "type": "textarea", "data": {}},
        {"question": "Rate the venue", "type": "radio", "data": {"options": ["1", "2", "3", "4", "5"]}},
        {"question": "Which sessions did you attend?", "type": "checkbox",
         "data": {"options": ["Keynote", "Workshops", "Hackathon"]}},
    ],
}


def main():
    Base.metadata.create_all(bind=engine)
    db = LocalSession()
    try:
        survey = db.query(Survey).filter(Survey.user_id == DEMO_OWNER, Survey.title == DEMO_SURVEY["title"]).first()
        if survey is None:
            survey = surveys.create(db, DEMO_OWNER, DEMO_SURVEY)

        print("Seeded survey:")
        print(f"survey_id:     {survey.id}")
        print(f"owner user_id: {DEMO_OWNER}")
        print(f"access token:  {issue_access_token(DEMO_OWNER)}")
    finally:
        db.close()

if __name__ == "__main__":
    main()
