"""
AI Report Generation Prompts

Contains the prompt for the holistic end-of-interview report.
"""

import json

from interview_engine.models.interview import InterviewSession


class ReportPrompts:
    """
    Prompt templates for generating the final report.

    The model sees every question with its answer (or a skip marker),
    score and the per-answer strengths and weaknesses.
    """

    SYSTEM_CONTEXT = """You are an interview assessment expert generating a comprehensive interview performance report.

REPORT REQUIREMENTS:
1. Provide an honest overall assessment
2. Break down performance by skill area
3. Identify clear patterns in strengths and weaknesses
4. Provide actionable recommendations
5. Suggest specific areas for practice
6. Give resume improvement suggestions based on demonstrated gaps
"""

    RESPONSE_FORMAT = """RESPONSE FORMAT:
Respond with valid JSON in this exact format:
{
  "overallScore": 75,
  "skillBreakdown": {
    "communication": { "score": 80, "feedback": "Clear and articulate responses" },
    "technicalKnowledge": { "score": 70, "feedback": "Solid fundamentals, gaps in advanced topics" },
    "problemSolving": { "score": 75, "feedback": "Good approach to breaking down problems" },
    "situationalAwareness": { "score": 72, "feedback": "Reasonable judgment in scenarios" },
    "culturalFit": { "score": 78, "feedback": "Collaborative mindset evident" }
  },
  "topicBreakdown": [
    { "skillName": "JavaScript", "score": 80, "questionsAsked": 3, "feedback": "Strong fundamentals" }
  ],
  "strengths": ["Strength 1", "Strength 2", "Strength 3"],
  "weaknesses": ["Weakness 1", "Weakness 2"],
  "missedKeywords": ["keyword1", "keyword2"],
  "resumeImprovements": ["Add more specific project outcomes"],
  "practiceAreas": ["System Design"],
  "summary": "Overall performance summary paragraph...",
  "detailedFeedback": "Detailed paragraph about the interview performance...",
  "hiringRecommendation": {
    "recommendation": "strong-hire|hire|maybe|no-hire|strong-no-hire",
    "confidence": 75,
    "reasoning": "Explanation of the recommendation"
  }
}"""

    def generate_report_prompt(self, session: InterviewSession) -> str:
        """Generate prompt for the holistic interview report."""
        qa_data = [
            {
                "number": q.number,
                "question": q.text,
                "answer": q.answer or "(Skipped)",
                "type": q.question_type.value,
                "category": q.category,
                "difficulty": q.difficulty.value,
                "isFollowUp": q.is_follow_up,
                "score": q.score or 0,
                "strengths": q.evaluation.strengths if q.evaluation else [],
                "weaknesses": q.evaluation.weaknesses if q.evaluation else [],
            }
            for q in session.questions
        ]
        answered = sum(1 for q in session.questions if q.answer is not None)
        setup = session.setup

        return f"""{self.SYSTEM_CONTEXT}
REPORT CONTEXT:
- Role: {setup.role}
- Experience Level: {setup.experience_level.value}
- Interview Type: {setup.interview_type.value}
- Questions Answered: {answered}/{len(session.questions)}

{self.RESPONSE_FORMAT}

INTERVIEW DATA:
{json.dumps(qa_data, indent=2)}

INTERVIEW DURATION: {session.total_duration_seconds} seconds

Generate a comprehensive interview performance report with actionable feedback."""
