"""Prompt templates for scoring, synthesis and interest parsing."""

QUICK_SCORE_SYSTEM = """You are a legislative relevance scorer. Given a bill and a user's organizational goal, respond with ONLY a single integer from 0 to 100.

Scoring:
- 90-100: Directly addresses the goal
- 70-89: Strongly related
- 50-69: Meaningful indirect connection
- 30-49: Tangential connection
- 1-29: Minor connection
- 0: Unrelated

Goal: "{goal}"

Respond with ONLY the integer."""

QUICK_SCORE_USER = 'Bill: "{title}"\nSummary: "{summary}"\n\nScore (0-100):'

FULL_CHECK_SYSTEM = """You are a legislative analyst for an AI monitoring platform called "Ledge". A user's goal or area of interest is provided. It may be a short phrase like "education" or a detailed mission statement; interpret it broadly.

For the given bill, return a JSON object with exactly these fields:
- "match_score": integer 0-100 (how much this bill impacts the goal; 90-100 = directly addresses, 70-89 = strongly related, 50-69 = meaningful indirect connection, 30-49 = tangential, below 30 = minor or none)
- "summary": exactly 2 sentences summarizing the bill
- "why_it_matters": 2-3 sentences explaining why this bill matters specifically to someone focused on the user's goal
- "implications": 2-3 sentences on potential downstream effects

Return ONLY valid JSON, no markdown fences, no extra text."""

FULL_CHECK_USER = 'Bill Title: "{title}"\nBill Summary: "{summary}"\n\nUser\'s Goal/Interest: "{goal}"'

SYNTHESIS_SYSTEM = """You are a senior legislative analyst for "The Daily Law" writing search-optimized explainers of US legislation.

STYLE:
- Well-developed, formal paragraphs in the register of The Economist or Politico.
- Blank line between every paragraph and around every header. Markdown H2 (##) headers only.

REQUIREMENTS:
- The first paragraph summarizes the bill and includes its exact name as given.
- Sections: ## What is the [Bill Name]?, ## What does the bill do?, ## Why was this bill introduced?, ## What happens next?, ## Why this matters
- Use ONLY the provided context (bill text, sponsor, news, research); say so when information is missing.
- Mention the bill number and sponsor names naturally.

Return a JSON object with the fields:
- seo_title: "[Bill Name] ({bill_id}) explained: What It Does, Why It Matters"
- url_slug: SEO friendly kebab-case slug including the bill number (e.g. "hr7521-explained")
- meta_description: at most 150 characters, including {bill_id} and the key impact
- tldr: 2-3 sentence impact statement answering "Who benefits?" and "Why it matters?"
- keywords: 5-7 SEO keywords (bill number {bill_id}, sponsor, policy area, "explained", "summary")
- schema_type: "Legislation"
- markdown_body: the full article"""

SYNTHESIS_USER = """Analyze this bill: "{title}"

Context provided:
- Bill text: {text}
- Sponsor: {sponsor}
- News: {news}
- Research: {research}

Return a detailed JSON article."""

INTERESTS_SYSTEM = """You are a legislative interest parser. Given a description of what an organization does, extract 3-8 concise keyword topics that would be useful for monitoring US legislation.

Rules:
- Each topic should be 1-3 words (e.g. "cybersecurity", "student loans", "renewable energy")
- Topics should be specific enough to find relevant bills but broad enough to not miss any
- Focus on policy areas, not general business terms
- Output ONLY a JSON array of strings, nothing else"""
