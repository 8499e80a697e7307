"""
Prompt Templates for Claude Requests

Module-level templates filled with ``str.format``. JSON examples inside the
templates use doubled braces.
"""

ANALYSIS_SYSTEM_PROMPT = """You are a senior software analyst. You turn loosely written Jira work items into precise, testable delivery criteria and always answer with a single JSON object."""

REQUIREMENTS_ANALYSIS_PROMPT = """You are a senior software analyst tasked with analyzing a Jira work item and creating comprehensive delivery criteria.

**Jira Issue Details:**
- Key: {key}
- Type: {issue_type}
- Summary: {summary}
- Description: {description}
- Project: {project_key}

**Your Task:**
Analyze this work item and provide a comprehensive analysis in the following JSON format:

{{
  "deliveryCriteria": {{
    "functionalRequirements": ["requirement 1", "requirement 2"],
    "technicalRequirements": ["requirement 1", "requirement 2"],
    "qualityRequirements": ["requirement 1", "requirement 2"],
    "acceptanceCriteria": ["criteria 1", "criteria 2"],
    "definitionOfDone": ["item 1", "item 2"]
  }},
  "validationTests": {{
    "unitTests": ["test scenario 1", "test scenario 2"],
    "integrationTests": ["test scenario 1", "test scenario 2"],
    "edgeCases": ["edge case 1", "edge case 2"],
    "performanceTests": ["performance requirement 1"]
  }},
  "technicalApproach": {{
    "architecture": "Brief architectural approach",
    "components": ["component 1", "component 2"],
    "dependencies": ["dependency 1", "dependency 2"],
    "risks": ["risk 1", "risk 2"],
    "mitigations": ["mitigation 1", "mitigation 2"]
  }},
  "estimatedEffort": {{
    "storyPoints": 5,
    "hours": 20,
    "complexity": "Medium",
    "confidence": "High",
    "assumptions": ["assumption 1", "assumption 2"]
  }}
}}

**Guidelines:**
- Be specific and actionable in your requirements
- Consider edge cases and error scenarios
- Include performance and security considerations
- Provide realistic effort estimates
- Focus on testable acceptance criteria

Respond with valid JSON only."""

IMPLEMENTATION_PROMPT = """You are a senior software engineer/analyst tasked with implementing a solution based on approved delivery criteria.

**Original Issue:** {original_key}
**Criteria Issue:** {criteria_key}
**Summary:** {summary}
**Description:** {description}

**Requirements Analysis:**
{requirements_json}

**Your Task:**
Generate a complete, production-ready implementation that satisfies all the delivery criteria. This could be code, documentation, analysis, process design, or other deliverables depending on the requirements.

**Response Format:**
Provide your implementation in this JSON structure:

{{
  "type": "code|documentation|analysis|process|other",
  "title": "Brief title of what was implemented",
  "description": "What this implementation provides",
  "primaryDeliverable": "Main content here (code, document text, analysis, etc.)",
  "supportingFiles": {{
    "filename1.ext": "content of supporting file 1"
  }},
  "implementationNotes": ["note 1", "note 2"],
  "usageInstructions": "How to use/deploy/apply this implementation",
  "dependencies": ["dependency1", "dependency2"],
  "configurationOptions": {{
    "option1": "description"
  }},
  "validationCriteria": ["how to verify this works", "acceptance test 1"],
  "performanceConsiderations": ["consideration 1", "consideration 2"]
}}

**Guidelines for Different Types:**
- **Code**: Provide clean, maintainable, well-documented source code
- **Documentation**: Create comprehensive guides, specifications, or reports
- **Analysis**: Deliver structured analysis with findings and recommendations
- **Process**: Design workflows, procedures, or methodologies
- **Other**: Any other type of deliverable as appropriate

**Quality Requirements:**
- Be thorough and complete
- Include proper error handling (for code) or risk mitigation (for other types)
- Add detailed explanations for complex logic or decisions
- Consider maintenance and scalability
- Make it actionable and practical

Respond with valid JSON only."""

CODE_TEST_PROMPT = """Generate a comprehensive test suite for the following code implementation:

**Original Issue:** {original_key}
**Implementation Type:** Code
**Source Code:**
{content}

**Test Requirements:**
- Unit tests for all public methods
- Integration tests for main workflows
- Edge case and error handling tests
- Performance validation tests
- Mock external dependencies appropriately

Generate a complete test file using Jest/Mocha framework with proper setup, teardown, and assertions.

Respond with the complete test code only."""

DOCUMENTATION_VALIDATION_PROMPT = """Create validation criteria for the following documentation:

**Original Issue:** {original_key}
**Implementation Type:** Documentation
**Document Title:** {title}
**Content Preview:** {preview}...

Generate a checklist and validation procedure to ensure this documentation:
- Covers all required topics completely
- Is accurate and up-to-date
- Is clear and accessible to the target audience
- Follows documentation standards
- Includes proper examples and references

Respond with a structured validation checklist and review procedure."""

ANALYSIS_VALIDATION_PROMPT = """Create validation criteria for the following analysis:

**Original Issue:** {original_key}
**Implementation Type:** Analysis
**Analysis Title:** {title}
**Content Preview:** {preview}...

Generate validation criteria to ensure this analysis:
- Uses appropriate methodologies
- Has sufficient supporting evidence
- Reaches valid conclusions
- Addresses all required scope areas
- Provides actionable recommendations

Respond with a structured validation framework and peer review checklist."""

PROCESS_VALIDATION_PROMPT = """Create validation criteria for the following process design:

**Original Issue:** {original_key}
**Implementation Type:** Process
**Process Title:** {title}
**Content Preview:** {preview}...

Generate validation criteria to ensure this process:
- Achieves the intended objectives
- Is practical and implementable
- Has clear roles and responsibilities
- Includes proper controls and checkpoints
- Can be measured and improved

Respond with a process validation checklist and pilot test plan."""

GENERIC_VALIDATION_PROMPT = """Create validation criteria for the following implementation:

**Original Issue:** {original_key}
**Implementation Type:** {implementation_type}
**Title:** {title}
**Content Preview:** {preview}...

Generate appropriate validation criteria based on the implementation type and content.
Focus on completeness, quality, usability, and alignment with original requirements.

Respond with a structured validation approach."""

VALIDATION_PROMPTS = {
    'code': CODE_TEST_PROMPT,
    'documentation': DOCUMENTATION_VALIDATION_PROMPT,
    'analysis': ANALYSIS_VALIDATION_PROMPT,
    'process': PROCESS_VALIDATION_PROMPT,
    'other': GENERIC_VALIDATION_PROMPT,
}

DOCUMENTATION_NOTES_PROMPT = """Create implementation notes for this documentation deliverable:

**Original Issue:** {original_key}
**Documentation Title:** {title}

Create a brief implementation guide that includes:
- How to use/deploy this documentation
- Maintenance and update procedures
- Related documentation references
- Version control considerations

Keep it concise and practical."""

README_PROMPT = """Generate comprehensive documentation for this implementation:

**Original Issue:** {original_key}
**Implementation Type:** {implementation_type}
**Title:** {title}
**Implementation:** {implementation_json}

Create a detailed README.md with:
- Overview and purpose
- Installation/setup instructions (if applicable)
- Usage examples and instructions
- Configuration options
- Maintenance considerations
- Troubleshooting guide

Respond with the complete markdown documentation."""

EVALUATION_SYSTEM_PROMPT = """You are a senior product manager evaluating deliverables against agreed delivery criteria. You are objective, specific, and always answer with a single JSON object."""

EVALUATION_PROMPT = """You are a senior product manager conducting a thorough evaluation of an implementation against its deliverable criteria.

**Evaluation Task:** {original_key}
**Implementation Type:** {implementation_type}
**Implementation Title:** {title}

**DELIVERABLE CRITERIA TO EVALUATE AGAINST:**

**Functional Requirements:**
{functional_requirements}

**Technical Requirements:**
{technical_requirements}

**Acceptance Criteria:**
{acceptance_criteria}

**Definition of Done:**
{definition_of_done}

**Estimated Effort:**
{estimated_effort}

**IMPLEMENTATION ARTIFACTS:**
{artifacts}

**YOUR EVALUATION TASK:**
Conduct a comprehensive product management evaluation using these success criteria:

1. **Requirements Coverage** (0-25 points): How completely does the implementation address all functional and technical requirements?

2. **Quality & Craftsmanship** (0-25 points): How well-executed is the implementation? Consider code quality, documentation clarity, thoroughness, etc.

3. **Usability & Practicality** (0-25 points): How usable and practical is the implementation for its intended purpose?

4. **Completeness & Polish** (0-25 points): How complete and polished is the implementation? Are there gaps or rough edges?

**CRITICAL:** You must also identify any ERRORS, DEFECTS, or CRITICAL ISSUES that would prevent deployment/use.

**Response Format (JSON only):**
{{
  "requirementsCoverage": {{
    "score": 0,
    "analysis": "detailed analysis",
    "coveredRequirements": ["req1", "req2"],
    "missedRequirements": ["req3"],
    "partialRequirements": ["req4"]
  }},
  "qualityCraftsmanship": {{
    "score": 0,
    "analysis": "detailed analysis",
    "strengths": ["strength1"],
    "weaknesses": ["weakness1"]
  }},
  "usabilityPracticality": {{
    "score": 0,
    "analysis": "detailed analysis",
    "usabilityStrengths": ["strength1"],
    "usabilityWeaknesses": ["weakness1"]
  }},
  "completenessPolish": {{
    "score": 0,
    "analysis": "detailed analysis",
    "completedAspects": ["aspect1"],
    "incompleteAspects": ["aspect2"]
  }},
  "errors": [
    {{
      "severity": "CRITICAL|HIGH|MEDIUM|LOW",
      "type": "FUNCTIONAL|TECHNICAL|USABILITY|DOCUMENTATION",
      "description": "specific error description",
      "impact": "how this affects deployment/usage",
      "recommendation": "how to fix this"
    }}
  ],
  "overallAssessment": {{
    "summary": "brief overall assessment",
    "readyForDeployment": false,
    "majorConcerns": ["concern1"],
    "recommendations": ["recommendation1"]
  }}
}}

Each score is an integer from 0 to 25. Be thorough, objective, and specific in your evaluation. Focus on whether this implementation would actually work and meet the original business need."""

ARTIFACT_BLOCK = """
**File: {filename}**
```
{content}
```
"""
