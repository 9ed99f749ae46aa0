"""
Static fallback templates.

Served when the cache is empty and every live source has failed, so callers
always receive usable data. Records are complete and hand-curated.
"""
from typing import List

from template_feed.models import LearningResource, ProjectTemplate


def _doc(title: str, url: str, provider: str) -> LearningResource:
    return LearningResource(title=title, url=url, type="docs", provider=provider)


def _tutorial(title: str, url: str, provider: str, duration: str) -> LearningResource:
    return LearningResource(title=title, url=url, type="tutorial", provider=provider, duration=duration)


FALLBACK_TEMPLATES: List[ProjectTemplate] = [
    ProjectTemplate(
        id="fallback-todo-list-app",
        name="Todo List App",
        description="Build a task manager where users can add, complete, filter and delete todos, persisted in local storage.",
        tech_stack=["HTML", "CSS", "JavaScript"],
        difficulty="beginner",
        time_estimate="1-2 weeks",
        skills_taught=["DOM manipulation", "Event handling", "Local storage"],
        category="frontend",
        features=["Add and delete tasks", "Mark tasks complete", "Filter by status", "Persist between sessions"],
        learning_resources=[
            _doc("Document Object Model (DOM)", "https://developer.mozilla.org/en-US/docs/Web/API/Document_Object_Model", "MDN"),
            _doc("Window.localStorage", "https://developer.mozilla.org/en-US/docs/Web/API/Window/localStorage", "MDN"),
        ],
    ),
    ProjectTemplate(
        id="fallback-personal-portfolio",
        name="Personal Portfolio Website",
        description="Create a responsive portfolio site that showcases your projects, skills and contact information.",
        tech_stack=["HTML", "CSS"],
        difficulty="beginner",
        time_estimate="1 week",
        skills_taught=["Semantic HTML", "Responsive layout", "CSS Flexbox and Grid"],
        category="frontend",
        features=["Project gallery", "About section", "Contact form", "Mobile-friendly layout"],
        learning_resources=[
            _doc("CSS Grid Layout", "https://developer.mozilla.org/en-US/docs/Web/CSS/CSS_grid_layout", "MDN"),
            _tutorial("Responsive Web Design", "https://www.freecodecamp.org/learn/2022/responsive-web-design/", "freeCodeCamp", "300 hours"),
        ],
    ),
    ProjectTemplate(
        id="fallback-weather-dashboard",
        name="Weather Dashboard",
        description="Fetch current conditions and a five day forecast from a public weather API and display them by city.",
        tech_stack=["JavaScript", "React", "REST API"],
        difficulty="intermediate",
        time_estimate="1-2 weeks",
        skills_taught=["Consuming REST APIs", "React state", "Async/await"],
        category="frontend",
        features=["City search", "Current conditions", "5-day forecast", "Unit toggle", "Search history"],
        learning_resources=[
            _doc("Using the Fetch API", "https://developer.mozilla.org/en-US/docs/Web/API/Fetch_API/Using_Fetch", "MDN"),
            _doc("React: Quick Start", "https://react.dev/learn", "React"),
        ],
    ),
    ProjectTemplate(
        id="fallback-url-shortener",
        name="URL Shortener Service",
        description="Build an HTTP API that turns long URLs into short codes, redirects visitors and counts clicks.",
        tech_stack=["Python", "Flask", "PostgreSQL"],
        difficulty="intermediate",
        time_estimate="1-2 weeks",
        skills_taught=["REST API design", "Relational data modeling", "HTTP redirects"],
        category="backend",
        features=["Create short links", "Redirect by code", "Click statistics", "Custom aliases"],
        learning_resources=[
            _doc("Flask Quickstart", "https://flask.palletsprojects.com/en/latest/quickstart/", "Pallets"),
            _doc("PostgreSQL Tutorial", "https://www.postgresql.org/docs/current/tutorial.html", "PostgreSQL"),
        ],
    ),
    ProjectTemplate(
        id="fallback-blog-api",
        name="Blog REST API",
        description="Design a REST API for posts, comments and authors with pagination, validation and token authentication.",
        tech_stack=["Node.js", "Express", "MongoDB"],
        difficulty="intermediate",
        time_estimate="2-3 weeks",
        skills_taught=["Express routing", "Data validation", "Authentication", "MongoDB modeling"],
        category="backend",
        features=["CRUD for posts", "Nested comments", "Pagination", "JWT authentication", "Input validation"],
        learning_resources=[
            _doc("Express Guide", "https://expressjs.com/en/guide/routing.html", "Express"),
            _doc("MongoDB Manual", "https://www.mongodb.com/docs/manual/", "MongoDB"),
        ],
    ),
    ProjectTemplate(
        id="fallback-expense-tracker",
        name="Expense Tracker",
        description="A full-stack app for logging expenses, categorizing spending and charting monthly totals.",
        tech_stack=["React", "Node.js", "Express", "PostgreSQL"],
        difficulty="intermediate",
        time_estimate="2-3 weeks",
        skills_taught=["Full-stack data flow", "Charting", "SQL aggregation"],
        category="fullstack",
        features=["Add expenses", "Category budgets", "Monthly charts", "CSV export", "User accounts"],
        learning_resources=[
            _doc("React: Managing State", "https://react.dev/learn/managing-state", "React"),
            _doc("Aggregate Functions", "https://www.postgresql.org/docs/current/functions-aggregate.html", "PostgreSQL"),
        ],
    ),
    ProjectTemplate(
        id="fallback-real-time-chat-app",
        name="Real-time Chat App",
        description="Build a chat application with rooms, presence indicators and message history over WebSockets.",
        tech_stack=["TypeScript", "Node.js", "WebSocket", "Redis", "React"],
        difficulty="advanced",
        time_estimate="3-4 weeks",
        skills_taught=["WebSockets", "Pub/sub messaging", "Real-time UI updates"],
        category="fullstack",
        features=["Chat rooms", "Typing indicators", "Online presence", "Message history", "Direct messages"],
        learning_resources=[
            _doc("The WebSocket API", "https://developer.mozilla.org/en-US/docs/Web/API/WebSockets_API", "MDN"),
            _doc("Redis Pub/Sub", "https://redis.io/docs/latest/develop/interact/pubsub/", "Redis"),
        ],
    ),
    ProjectTemplate(
        id="fallback-e-commerce-store",
        name="E-commerce Store",
        description="Create an online store with a product catalog, shopping cart, checkout flow and an admin dashboard.",
        tech_stack=["React", "Django", "PostgreSQL", "Stripe", "Docker"],
        difficulty="advanced",
        time_estimate="4-6 weeks",
        skills_taught=["Payment integration", "Authentication", "Relational schema design", "Containerization"],
        category="fullstack",
        features=["Product catalog", "Shopping cart", "Checkout", "Order history", "Admin dashboard", "Inventory tracking"],
        learning_resources=[
            _tutorial("Writing your first Django app", "https://docs.djangoproject.com/en/stable/intro/tutorial01/", "Django", "4 hours"),
            _doc("Stripe Checkout", "https://docs.stripe.com/payments/checkout", "Stripe"),
        ],
    ),
    ProjectTemplate(
        id="fallback-ci-cd-pipeline",
        name="CI/CD Pipeline",
        description="Automate testing, container builds and deployments for a small web service using a hosted CI runner.",
        tech_stack=["Docker", "GitHub Actions", "CI/CD"],
        difficulty="intermediate",
        time_estimate="1-2 weeks",
        skills_taught=["Continuous integration", "Container images", "Deployment automation"],
        category="devops",
        features=["Run tests on push", "Build and tag images", "Deploy on merge", "Status badges"],
        learning_resources=[
            _doc("GitHub Actions documentation", "https://docs.github.com/en/actions", "GitHub"),
            _doc("Docker: Get started", "https://docs.docker.com/get-started/", "Docker"),
        ],
    ),
    ProjectTemplate(
        id="fallback-kubernetes-microservices",
        name="Kubernetes Microservices Deployment",
        description="Split an application into services and deploy them to Kubernetes with autoscaling, health checks and monitoring.",
        tech_stack=["Kubernetes", "Docker", "Helm", "Prometheus"],
        difficulty="advanced",
        time_estimate="4-6 weeks",
        skills_taught=["Container orchestration", "Service discovery", "Observability", "Autoscaling"],
        category="devops",
        features=["Service manifests", "Helm charts", "Horizontal autoscaling", "Liveness probes", "Metrics dashboards"],
        learning_resources=[
            _tutorial("Kubernetes Basics", "https://kubernetes.io/docs/tutorials/kubernetes-basics/", "Kubernetes", "2 hours"),
            _doc("Helm Docs", "https://helm.sh/docs/", "Helm"),
        ],
    ),
    ProjectTemplate(
        id="fallback-habit-tracker-mobile",
        name="Habit Tracker Mobile App",
        description="Build a mobile app to track daily habits with streaks, reminders and simple progress statistics.",
        tech_stack=["React Native", "TypeScript"],
        difficulty="intermediate",
        time_estimate="2-3 weeks",
        skills_taught=["Mobile UI", "Local notifications", "Offline storage"],
        category="mobile",
        features=["Create habits", "Daily check-ins", "Streak tracking", "Reminders", "Progress charts"],
        learning_resources=[
            _doc("React Native: Getting Started", "https://reactnative.dev/docs/getting-started", "React Native"),
        ],
    ),
    ProjectTemplate(
        id="fallback-flashcards-mobile",
        name="Flashcards Study App",
        description="A simple mobile flashcard app with decks, flip animations and a basic spaced repetition schedule.",
        tech_stack=["Flutter", "Dart"],
        difficulty="beginner",
        time_estimate="1-2 weeks",
        skills_taught=["Widgets and layout", "State management", "Animations"],
        category="mobile",
        features=["Create decks", "Flip cards", "Review schedule", "Progress summary"],
        learning_resources=[
            _tutorial("Your first Flutter app", "https://docs.flutter.dev/get-started/codelab", "Flutter", "2 hours"),
        ],
    ),
]
