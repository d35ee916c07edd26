"""
Centralized AI Prompt Repository
- One template per AI call site (validation, extraction, detection, matching)
- Every template asks for a single JSON object; parsing is strict
"""

# --- CV VALIDATION ---
CV_VALIDATION_TEMPLATE = """You are an HR expert who specialises in analysing recruitment documents.

Decide whether the text below is a CV (curriculum vitae / resume) of a job candidate.

The document IS a CV if it contains:
- Personal details (first name, last name)
- Work experience or education
- Skills or competencies
- A layout typical of a CV/resume

The document is NOT a CV if it is:
- A cover letter
- An invoice, contract or other business document
- An article, report or academic paper
- A product datasheet or a manual

DOCUMENT TEXT:
{document_text}

Respond with a JSON object:
{{
  "isCV": true or false,
  "confidence": number 0-100 (how certain you are),
  "reason": "short explanation of the decision"
}}"""

# --- CANDIDATE EXTRACTION ---
CV_EXTRACTION_TEMPLATE = """You are an HR expert. Extract structured candidate data from the CV below.

CRITICAL RULES:
- Use ONLY information that is literally present in the CV text.
- NEVER invent names, e-mail addresses, phone numbers, URLs, employers or dates.
  Do not produce plausible-looking placeholders such as "John Doe" or "jan.kowalski@example.com".
- If a piece of information is missing, return null (or an empty array for lists).
- Separate technical/hard skills from soft skills.
- yearsOfExperience is the total number of years of professional experience as an integer, or null.

CV TEXT:
{cv_text}

Return ONLY a JSON object with exactly these keys:
{{
  "firstName": "first name or null",
  "lastName": "last name or null",
  "email": "e-mail address or null",
  "phone": "phone number or null",
  "summary": "profile summary in 4-6 sentences or null",
  "yearsOfExperience": integer or null,
  "technicalSkills": ["skill", ...],
  "softSkills": ["skill", ...],
  "experience": [
    {{"company": "company name", "position": "job title", "startDate": "YYYY-MM or YYYY",
      "endDate": "YYYY-MM or YYYY or null if current", "description": "duties or null"}}
  ],
  "education": [
    {{"institution": "school", "degree": "degree", "field": "field of study", "graduationYear": "YYYY or null"}}
  ],
  "certifications": ["certification", ...],
  "languages": [{{"language": "language", "level": "Native | Fluent | Intermediate | Basic"}}],
  "keyAchievements": ["top 3-5 achievements"],
  "linkedinUrl": "profile URL or null",
  "location": "city, country or null"
}}"""

# --- JOB POSITION DETECTION ---
JOB_DETECTION_TEMPLATE = """You are an HR expert. Decide whether the candidate is applying for one of the open positions
or sending a spontaneous application.

OPEN POSITIONS:
{positions_json}

E-MAIL FROM THE CANDIDATE:
Subject: {subject}
Body: {body}

TASK:
1. Is the candidate applying for one of the open positions? If so, which one?
2. How confident are you (0-100)?
3. Why did you decide that?

Guidelines:
- Look for phrases like "application for the position of", "in response to your advert", a position title.
- Compare the position titles with the e-mail subject and body.
- If no position is clearly mentioned, answer "spontaneous".
- If the e-mail mentions a position that is not on the list, answer "spontaneous".
- jobPositionId MUST be one of the ids listed above, or null.

Respond with a JSON object:
{{
  "jobPositionId": position id or null,
  "confidence": 0-100,
  "reason": "explanation in 1-2 sentences",
  "applicationType": "direct" or "spontaneous"
}}"""

# --- CANDIDATE MATCHING ---
CANDIDATE_MATCH_TEMPLATE = """You are an HR expert who specialises in recruitment. Assess how well the candidate fits the position.

POSITION:
Title: {title}
Description: {description}
Requirements: {requirements}
Responsibilities: {responsibilities}
Location: {location}

CANDIDATE:
Name: {candidate_name}
Location: {candidate_location}
Years of experience: {years_of_experience}
Summary: {summary}

Technical skills: {technical_skills}
Soft skills: {soft_skills}
Experience: {experience}
Education: {education}
Certifications: {certifications}
Languages: {languages}
Key achievements: {key_achievements}

FULL CV TEXT:
{cv_text}

TASK:
Score the fit on a 0-100 scale where:
- 0-30: the candidate does not meet the basic requirements
- 31-50: the candidate meets some requirements but lacks key competencies
- 51-70: good fit, meets most requirements
- 71-85: very good fit, meets all requirements
- 86-100: ideal candidate, exceeds the requirements

Strengths and weaknesses must be concrete and backed by evidence from the CV
(name the technology, employer, project or qualification). Do not write generic praise
such as "motivated" or "team player" unless the CV demonstrates it.

Respond with a JSON object:
{{
  "matchScore": integer 0-100,
  "aiAnalysis": "detailed analysis of the fit (3-4 sentences)",
  "strengths": ["strength 1", "strength 2", "strength 3"],
  "weaknesses": ["weakness 1", "weakness 2"],
  "summary": "short summary (1-2 sentences) of why the candidate fits or not"
}}"""

NOT_PROVIDED = "Not provided"

# helper to build prompts
def get_prompt(template: str, **kwargs) -> str:
    return template.format(**kwargs)
