"""problems, submissions, profiles tables and crediting RPCs

Revision ID: 0001a1b2c3d4
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy import text


# revision identifiers, used by Alembic.
revision: str = '0001a1b2c3d4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    bind.execute(text(
        """
        CREATE TABLE IF NOT EXISTS public.problems (
          id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
          title text NOT NULL,
          difficulty text NOT NULL,
          visible_test_cases jsonb NOT NULL DEFAULT '[]'::jsonb,
          hidden_test_cases jsonb NOT NULL DEFAULT '[]'::jsonb,
          start_code jsonb NOT NULL DEFAULT '[]'::jsonb,
          reference_solution jsonb NOT NULL DEFAULT '[]'::jsonb,
          created_at timestamptz NOT NULL DEFAULT now(),
          CONSTRAINT ck_problems_difficulty CHECK (difficulty IN ('easy','medium','hard'))
        );
        """
    ))
    bind.execute(text(
        """
        CREATE TABLE IF NOT EXISTS public.profiles (
          id text PRIMARY KEY,
          problem_solved text[] NOT NULL DEFAULT '{}',
          profile_stats jsonb NOT NULL DEFAULT
            '{"easy_problems":0,"medium_problems":0,"hard_problems":0,"total_submissions":0,"accepted_submissions":0}'::jsonb,
          streak_data jsonb NOT NULL DEFAULT
            '{"current_streak":0,"longest_streak":0,"last_submission_date":null,"streak_dates":[]}'::jsonb
        );
        """
    ))
    bind.execute(text(
        """
        CREATE TABLE IF NOT EXISTS public.submissions (
          id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
          user_id text NOT NULL REFERENCES public.profiles(id) ON DELETE CASCADE,
          problem_id uuid NOT NULL REFERENCES public.problems(id) ON DELETE CASCADE,
          code text NOT NULL,
          language text NOT NULL,
          status text NOT NULL DEFAULT 'pending',
          test_cases_passed integer NOT NULL DEFAULT 0,
          test_cases_total integer NOT NULL DEFAULT 0,
          runtime double precision NOT NULL DEFAULT 0,
          memory integer NOT NULL DEFAULT 0,
          error_message text,
          created_at timestamptz NOT NULL DEFAULT now(),
          CONSTRAINT ck_submissions_status CHECK (status IN ('pending','accepted','wrong','error')),
          CONSTRAINT ck_submissions_counts CHECK (test_cases_passed <= test_cases_total)
        );
        """
    ))
    bind.execute(text(
        "CREATE INDEX IF NOT EXISTS ix_submissions_user_problem ON public.submissions (user_id, problem_id, created_at DESC)"
    ))
    # Single-statement compare-and-set: only the caller that adds the problem gets true.
    bind.execute(text(
        """
        CREATE OR REPLACE FUNCTION public.credit_solved_problem(p_user_id text, p_problem_id text, p_difficulty text)
        RETURNS boolean
        LANGUAGE plpgsql
        AS $$
        DECLARE
          counter text := p_difficulty || '_problems';
          credited integer;
        BEGIN
          UPDATE public.profiles
             SET problem_solved = array_append(problem_solved, p_problem_id),
                 profile_stats = profile_stats
                   || jsonb_build_object(counter, COALESCE((profile_stats->>counter)::int, 0) + 1)
                   || jsonb_build_object('accepted_submissions',
                        COALESCE((profile_stats->>'accepted_submissions')::int, 0) + 1)
           WHERE id = p_user_id
             AND NOT (p_problem_id = ANY(problem_solved));
          GET DIAGNOSTICS credited = ROW_COUNT;
          RETURN credited > 0;
        END;
        $$;
        """
    ))
    bind.execute(text(
        """
        CREATE OR REPLACE FUNCTION public.increment_total_submissions(p_user_id text)
        RETURNS void
        LANGUAGE sql
        AS $$
          UPDATE public.profiles
             SET profile_stats = profile_stats || jsonb_build_object('total_submissions',
                   COALESCE((profile_stats->>'total_submissions')::int, 0) + 1)
           WHERE id = p_user_id;
        $$;
        """
    ))


def downgrade() -> None:
    bind = op.get_bind()
    bind.execute(text("DROP FUNCTION IF EXISTS public.increment_total_submissions(text)"))
    bind.execute(text("DROP FUNCTION IF EXISTS public.credit_solved_problem(text, text, text)"))
    bind.execute(text("DROP TABLE IF EXISTS public.submissions"))
    bind.execute(text("DROP TABLE IF EXISTS public.profiles"))
    bind.execute(text("DROP TABLE IF EXISTS public.problems"))
