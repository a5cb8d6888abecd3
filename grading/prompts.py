DEFAULT_GRADING_INSTRUCTION = "Grade this submission against the memo and provide a clear report."
EMPTY_REPORT = "No grading report generated."


def build_grading_prompt(student_name, instruction=""):
    instruction = (instruction or "").strip() or DEFAULT_GRADING_INSTRUCTION
    return f"""
You are a strict but fair instructor. Student: {student_name}.

Task: compare the student's answer against the memo and generate:
1) Score out of 100
2) Key strengths
3) Gaps/mistakes
4) Recommendations
5) Short final summary for parents/teachers.

Additional instruction:
{instruction}
""".strip()
